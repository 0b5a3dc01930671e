"""
The boundary to the control-surface host.

The host owns rendering, persistence of per-action settings and event dispatch. The core only
sees each visible action through an ActionHandle, and the property inspector through a
PropertyInspector. Both are implemented by the host integration.
"""
from abc import abstractmethod
from enum import Enum


class ActionKind(Enum):
    KEYPAD = 'keypad'
    DIAL = 'dial'


class ActionHandle:
    """ One visible instance of an action on the control surface. """

    @property
    @abstractmethod
    def id(self):
        """ identifies this instance across callbacks """
        raise NotImplementedError

    @property
    @abstractmethod
    def kind(self) -> ActionKind:
        raise NotImplementedError

    @property
    def is_dial(self):
        """ dials support feedback (value and icon), keypads only a title. """
        return self.kind is ActionKind.DIAL

    @abstractmethod
    async def get_settings(self) -> dict:
        raise NotImplementedError

    @abstractmethod
    async def set_settings(self, settings: dict):
        raise NotImplementedError

    @abstractmethod
    async def set_title(self, title: str):
        raise NotImplementedError

    @abstractmethod
    async def set_feedback(self, feedback: dict):
        """ sets the dial layout values, e.g. {'value': ...} or {'icon': ...}. Dials only. """
        raise NotImplementedError


class PropertyInspector:
    """ The settings UI of the currently selected action. """

    @abstractmethod
    async def send(self, payload: dict):
        raise NotImplementedError
