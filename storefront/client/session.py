from dataclasses import dataclass, field
from typing import Dict, Optional

import requests

DEFAULT_BASE_URL = "http://localhost:5001"


@dataclass
class ApiSession:
    """Connection context handed to every client call.

    Holds the base URL and the bearer token of the signed-in customer, if any.
    """

    base_url: str = DEFAULT_BASE_URL
    token: Optional[str] = None
    http: requests.Session = field(default_factory=requests.Session)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def sign_in(self, token: str):
        self.token = token

    def sign_out(self):
        self.token = None
