from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from umeradio.state.playback_session import PlaybackResource

AfterCallback = Callable[[Optional[Exception]], None]


class BaseSink(ABC):
    """
    Abstract base class for all output sinks.

    A sink accepts one playback resource at a time, pulls PCM from it at
    its own pace, and calls `after` exactly once when the resource is fully
    consumed (with the error, if playback broke off).
    """

    @abstractmethod
    def play(self, resource: "PlaybackResource", after: AfterCallback) -> None:
        """
        Submit a resource for playback, replacing any previous one.

        Args:
            resource: PCM source with live gain
            after: Completion callback, receives an Exception or None
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """
        Stop playback and release resources.
        """
        ...
