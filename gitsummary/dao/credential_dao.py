"""CredentialDAO — read access to stored access tokens."""

from gitsummary.dao.base import BaseDAO
from gitsummary.models.credential import Credential


class CredentialDAO(BaseDAO[Credential]):
    model = Credential
