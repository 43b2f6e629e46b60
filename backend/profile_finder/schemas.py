from typing import List, Optional
from pydantic import BaseModel


class Profile(BaseModel):
    login: str
    name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    html_url: Optional[str] = None
    followers: int = 0
    following: int = 0
    public_repos: int = 0

    @property
    def display_name(self) -> str:
        return self.name or self.login


class Repository(BaseModel):
    name: str
    description: Optional[str] = None
    stars: int = 0
    forks: int = 0
    language: Optional[str] = None
    html_url: Optional[str] = None


class LookupResult(BaseModel):
    key: str
    profile: Profile
    repositories: List[Repository]

    @property
    def is_empty(self) -> bool:
        return not self.repositories


class LookupResponse(BaseModel):
    username: str
    display_name: str
    profile: Profile
    repositories: List[Repository]
    repo_count: int

    @classmethod
    def from_result(cls, result: LookupResult) -> "LookupResponse":
        return cls(
            username=result.key,
            display_name=result.profile.display_name,
            profile=result.profile,
            repositories=result.repositories,
            repo_count=len(result.repositories),
        )
