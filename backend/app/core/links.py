# app/core/links.py

from urllib.parse import quote


class LinkBuilder:
    """Builds the public URLs handed back to clients."""

    def __init__(self, base_url: str):
        self.base_url = str(base_url or "").rstrip("/")

    def share_url(self, content_id: str) -> str:
        return f"{self.base_url}/view/{quote(content_id)}"

    def delete_url(self, content_id: str, delete_token: str) -> str:
        return f"{self.base_url}/delete/{quote(content_id)}/{quote(delete_token)}"

    def download_url(self, content_id: str) -> str:
        return f"{self.base_url}/api/download/{quote(content_id)}"
