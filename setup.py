"""
Packaging for the app audio switcher plugin core.

Tests sit beside the modules as *_test.py and run with
`python -m unittest discover -s src -p "*_test.py"` after `pip install -e .[test]`.
"""

from setuptools import setup


setup(
    name='appaudioswitch',
    version='0.0.1',
    description='Worker process and socket supervision for the app audio switcher control-surface plugin.',
    url='',
    author='',
    author_email='',
    license='LGPL',
    package_dir={'': 'src'},
    packages=['appaudioswitch', 'appaudioswitch.actions', 'appaudioswitch.conduit', 'appaudioswitch.config',
              'appaudioswitch.connector', 'appaudioswitch.protocol', 'appaudioswitch.state',
              'appaudioswitch.support'],
    package_data={'appaudioswitch.config': ['*.cfg']},
    python_requires='>=3.10',
    install_requires=['configobj>=5.0.6'],
    extras_require={
        'test': ['PyHamcrest>=2.0'],
    },
    zip_safe=False,
)
