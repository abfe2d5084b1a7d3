"""
In-memory user store backing the /api/users demonstration endpoints.

Stores the latest (v2) representation; routes project it down to whatever
contract version the client negotiated.
"""

import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class UserStore:
    """Thread-safe, process-local user store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._users: List[Dict[str, Any]] = []
        self._next_id = 1

    def create(
        self,
        name: str,
        age: float,
        email: Optional[str] = None,
        role: str = "member",
    ) -> Dict[str, Any]:
        with self._lock:
            user = {
                "id": self._next_id,
                "name": name,
                "age": age,
                "email": email,
                "role": role,
                "createdAt": datetime.now(timezone.utc),
            }
            self._next_id += 1
            self._users.append(user)
            return dict(user)

    def list(self, limit: Optional[int] = None, offset: int = 0, role: Optional[str] = None) -> List[Dict[str, Any]]:
        with self._lock:
            users = [dict(u) for u in self._users if role is None or u["role"] == role]
        users = users[offset:]
        if limit is not None:
            users = users[:limit]
        return users

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)
