"""In-memory users and experiences for the development API.

Nothing is persisted; the store lives as long as the process. Tests
call :meth:`MemoryStore.reset` between cases.
"""

from __future__ import annotations

import logging
import uuid
from typing import Dict, List, Optional

from ..exceptions import DuplicateMail, UnknownId
from ..schemas.experiences import ExperienceIn, ExperienceModel
from ..schemas.users import UserIn, UserModel

logger = logging.getLogger(__name__)


def _new_id() -> str:
    # 24 hex characters, the width of a document database object id
    return uuid.uuid4().hex[:24]


class MemoryStore:
    def __init__(self) -> None:
        self.users: Dict[str, UserModel] = {}
        self.experiences: Dict[str, ExperienceModel] = {}

    def reset(self) -> None:
        self.users.clear()
        self.experiences.clear()

    # users

    def _check_mail(self, mail: str, user_id: Optional[str] = None) -> None:
        wanted = mail.strip().lower()
        for other in self.users.values():
            if other.id != user_id and other.mail.strip().lower() == wanted:
                raise DuplicateMail(mail)

    def list_users(self) -> List[UserModel]:
        return list(self.users.values())

    def get_user(self, user_id: str) -> UserModel:
        try:
            return self.users[user_id]
        except KeyError:
            raise UnknownId("user", user_id) from None

    def add_user(self, data: UserIn) -> UserModel:
        self._check_mail(data.mail)
        user = UserModel(id=_new_id(), **data.model_dump())
        self.users[user.id] = user
        logger.info("Added user %s", user.id)
        return user

    def update_user(self, user_id: str, data: UserIn) -> UserModel:
        self.get_user(user_id)
        self._check_mail(data.mail, user_id)
        user = UserModel(id=user_id, **data.model_dump())
        self.users[user_id] = user
        return user

    def delete_user(self, user_id: str) -> None:
        self.get_user(user_id)
        del self.users[user_id]
        logger.info("Deleted user %s", user_id)

    # experiences

    def list_experiences(
        self, owner: Optional[str] = None, participant: Optional[str] = None
    ) -> List[ExperienceModel]:
        items = list(self.experiences.values())
        if owner is None and participant is None:
            return items
        # Filters combine with OR: owner matches, or participant matches
        return [
            e
            for e in items
            if (owner is not None and e.owner == owner)
            or (participant is not None and participant in e.participants)
        ]

    def get_experience(self, exp_id: str) -> ExperienceModel:
        try:
            return self.experiences[exp_id]
        except KeyError:
            raise UnknownId("experience", exp_id) from None

    def add_experience(self, data: ExperienceIn) -> ExperienceModel:
        exp = ExperienceModel(id=_new_id(), **data.model_dump())
        self.experiences[exp.id] = exp
        # Everyone involved lists the experience, owner first
        involved = [exp.owner] if exp.owner else []
        involved += [p for p in exp.participants if p not in involved]
        for user_id in involved:
            user = self.users.get(user_id)
            if user is not None and exp.id not in user.experiencies:
                user.experiencies.append(exp.id)
        return exp

    def delete_experience(self, exp_id: str) -> None:
        self.get_experience(exp_id)
        del self.experiences[exp_id]
        for user in self.users.values():
            if exp_id in user.experiencies:
                user.experiencies.remove(exp_id)
        logger.info("Deleted experience %s", exp_id)


store = MemoryStore()
