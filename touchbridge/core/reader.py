"""Base device source abstraction"""
import abc
from typing import Optional

from touchbridge.core.descriptor import EventDescriptor


class DeviceSource(abc.ABC):
    """A pollable input device used while capturing a binding."""

    @abc.abstractmethod
    def start(self):
        raise NotImplementedError

    @abc.abstractmethod
    def stop(self):
        raise NotImplementedError

    @abc.abstractmethod
    def get_next_input(self) -> Optional[EventDescriptor]:
        """Return the next pending input, or None when nothing is pending."""
        raise NotImplementedError
