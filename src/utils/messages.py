from textual.message import Message

from store.models import Identity


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    posted by the sidebar once the user confirmed logging out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired at app level after the identity store accepted a login,
    or after the user chose to continue as guest
    """

    bubble = True

    def __init__(self, identity: Identity) -> None:
        super().__init__()
        self.identity = identity


class CartChangedMessage(Message):
    """
    Fired by a cart line widget after it changed or removed its item.
    Bubbles up to CartScreen, which re-renders from the synchronizer.
    """

    bubble = True


class ModeSwitchedMessage(Message):
    """
    fired by the sidebar menu; the app performs the switch
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
