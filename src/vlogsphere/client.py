"""
VlogSphereClient: wires the process-wide components together.
"""

from typing import Callable, Optional

from vlogsphere.mutations.cache import EntityCache
from vlogsphere.mutations.engine import MutationEngine
from vlogsphere.notify import Notifier, ToastQueue
from vlogsphere.session.manager import SessionManager
from vlogsphere.storage import CredentialStorage
from vlogsphere.transport.gateway import TransportGateway


class VlogSphereClient:
    """
    Single instance per running client.

    Example:
        async with VlogSphereClient() as client:
            await client.session.bootstrap()
            await client.mutations.toggle("u2", "follow")
    """

    def __init__(
        self,
        gateway: Optional[TransportGateway] = None,
        storage: Optional[CredentialStorage] = None,
        notifier: Optional[Notifier] = None,
        renewal_interval_minutes: Optional[float] = None,
        on_login_required: Optional[Callable[[str, Optional[str]], None]] = None,
    ):
        self.gateway = gateway or TransportGateway()
        self.notifier = notifier or ToastQueue()
        self.session = SessionManager(
            self.gateway,
            storage=storage,
            notifier=self.notifier,
            renewal_interval_minutes=renewal_interval_minutes,
        )
        self.mutations = MutationEngine(
            self.session,
            cache=EntityCache(),
            on_login_required=on_login_required,
        )

    async def aclose(self) -> None:
        await self.session.aclose()

    async def __aenter__(self) -> "VlogSphereClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
