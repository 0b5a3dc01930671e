import os
import platform

from configobj import ConfigObj, ConfigObjError, Section
from validate import Validator

# The default extension for configuration files
config_extension = '.cfg'

# the name of the configuration files for the plugin
config_name = 'appaudioswitch'

config_directory = os.path.dirname(os.path.abspath(__file__))


def config_flavor(name, flavor=None):
    configname = name if not flavor else name + '.' + flavor
    return configname


def config_filename(name, directory):
    """
    Determines the location of a config file in the given directory.
    """
    return os.path.join(directory, name + config_extension)


def load_config_file_base(file, must_exist=True):
    """
    Loads a configuration file
    :param file:        The configuration file to load
    :param must_exist:  when True, the file must exist or an exception is thrown.
    :return: The ConfigObj instance for the file.
    """
    try:
        return ConfigObj(file, interpolation='Template', file_error=must_exist) \
            if must_exist or os.path.exists(file) else ConfigObj()
    except ConfigObjError as e:
        raise type(e)(str(e) + ' at ' + file)


def config_flavor_file(name, directory, subpart=None) -> ConfigObj:
    """
    Loads a specialization of a config file. The configuration file is expected to be named
    after the base, followed by a period and then the specialization, if the specialization is given,
    otherwise just the base name. A missing file gives an empty configuration.
    :param name:    The name of the base configuration
    :param subpart: The name of the specialization.
    :return: The ConfigObj for the configuration file.
    """
    configname = config_flavor(name, subpart)
    file = config_filename(configname, directory)
    return load_config_file_base(file, False)


def map_os_name(name):
    """
    >>> map_os_name('Windows')
    'windows'
    >>> map_os_name("Darwin")
    'osx'
    """
    name = name.lower()
    if name == 'darwin':
        name = 'osx'
    return name


def os_name():
    return map_os_name(platform.system())


def load_config(name=config_name, directory=config_directory, local_directory=None, user_directory=None):
    """
        Loads all the configuration files that relate to the given name.
        Configurations are merged in this order, later files overriding earlier ones:
        - the default specialization
        - the platform specialization
        - the user override, ~/<name>.cfg
        - the local configuration, <local_directory>/<name>.cfg
        The result is validated against the schema specialization, which also supplies
        defaults and converts the values to their types.
    :param directory: the location of the packaged configuration files
    :param local_directory: the location of the local configuration. Defaults to directory.
    :param user_directory: the location of the user override. Defaults to the home directory.
    :return: the validated ConfigObj
    """
    default_config = config_flavor_file(name, directory, 'default')
    platform_config = config_flavor_file(name, directory, os_name())
    user_config = config_flavor_file(name, user_directory or os.path.expanduser('~'))
    local_config = config_flavor_file(name, local_directory or directory)

    schema = config_filename(config_flavor(name, 'schema'), directory)
    config = ConfigObj(configspec=schema)
    config.merge(default_config)
    config.merge(platform_config)
    config.merge(user_config)
    config.merge(local_config)

    result = config.validate(Validator())
    if result is not True:
        raise ConfigObjError("the config file %s failed validation %s" % (name, result))
    return config


def fetch_conf_path(conf: Section, path):
    """
    Retrieves the named configuration section
    :param conf:        The root configuration
    :param path:   An iterable that lists the names of the config to resolve
    :return: The configuration object identified by the path, or None
    """
    for p in path:    # lookup specific section
        conf = conf.get(p, None)
        if conf is None:
            return
    return conf


def apply_conf_path(conf: Section, name_parts, target):
    """
    Applies a configuration path to a given target object
    :param conf:        The root configuration object
    :param name_parts:  The path of the configuration to apply
    :param target:      The target object that receives the configured values
    """
    conf = fetch_conf_path(conf, name_parts)
    if conf:
        apply_conf(conf, target)


def apply_conf(conf: Section, target):
    """
    Applies the attributes contained in a configuration object to a target object.
    It does this by iterating over the items in the configuration and setting any attributes with the same name.
    """
    for k, v in conf.items():
        if hasattr(target, k):
            setattr(target, k, v)


class WorkerSettings:
    """ How to start and reach the worker process. Populated from the [worker] section. """

    def __init__(self):
        self.executable = 'AppAudioSwitcherUtility'
        self.host = '127.0.0.1'
        self.port = 32122
        self.launch_timeout = 5.0
        self.connect_timeout = 5.0
        self.ready_marker = 'Listening on port'


class SessionSettings:
    """ Populated from the [session] section. """

    def __init__(self):
        self.update_process_interval = 1.0
        self.max_buffer = 1024 * 1024
        self.read_size = 65536


class Settings:
    def __init__(self, worker=None, session=None):
        self.worker = worker or WorkerSettings()
        self.session = session or SessionSettings()

    def resolve_executable(self, directory=None):
        """ the worker executable path. A relative path is taken relative to the given directory,
            by default the working directory, which the host sets to the plugin folder. """
        path = os.path.expanduser(self.worker.executable)
        if os.path.isabs(path):
            return path
        return os.path.normpath(os.path.join(directory or os.getcwd(), path))


def load_settings(name=config_name, directory=config_directory, local_directory=None, user_directory=None):
    """ loads the configuration and applies it to a new Settings instance. """
    conf = load_config(name, directory, local_directory, user_directory)
    settings = Settings()
    apply_conf_path(conf, ['worker'], settings.worker)
    apply_conf_path(conf, ['session'], settings.session)
    return settings
