from typing import List, Optional, Protocol

from ..schemas import Profile, Repository
from ..services.session import CancelToken


class ProfileSource(Protocol):
    async def fetch_profile(self, key: str, token: Optional[CancelToken] = None) -> Profile:
        ...

    async def fetch_repositories(
        self, key: str, token: Optional[CancelToken] = None
    ) -> List[Repository]:
        ...
