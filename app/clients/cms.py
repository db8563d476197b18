from app.clients.http import UpstreamClient
from app.core.errors import CMS
from app.models.cms import PublishedIndex


class CMSClient(UpstreamClient):
    """Read-only client for the CMS (Zebedee) published content."""

    upstream = CMS

    def get_published_index(self) -> PublishedIndex:
        """Every published page URI."""
        data = self._get_json("/publishedindex", kind="published index")
        return PublishedIndex.model_validate(data)

    def get_published_data(self, uri: str) -> bytes:
        """Raw page JSON for one published URI."""
        return self._get("/publisheddata", kind="published data", params={"uri": uri})
