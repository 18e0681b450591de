"""
AWS credentials for the uploader.

Mobile builds exchange a Cognito identity-pool id for temporary AWS
credentials once at start-up; the same path is available here. Without an
identity pool, static keys from settings (or boto3's default credential
chain) are used.
"""

import logging
from typing import Optional

import boto3
import botocore.session
from botocore import UNSIGNED
from botocore.config import Config
from botocore.credentials import RefreshableCredentials
from botocore.exceptions import BotoCoreError, ClientError

from ...config.settings import Settings
from ...core.uploads.errors import CredentialsError

logger = logging.getLogger(__name__)


class CognitoCredentialFetcher:
    """
    Fetches temporary credentials for an unauthenticated Cognito identity.

    The identity id is resolved on first use and reused for every refresh,
    so one process maps to one identity.
    """

    def __init__(self, identity_pool_id: str, region: str, client=None) -> None:
        self._identity_pool_id = identity_pool_id
        self._identity_id: Optional[str] = None
        # Unauthenticated identity calls are not SigV4-signed
        self._client = client or boto3.client(
            "cognito-identity",
            region_name=region,
            config=Config(signature_version=UNSIGNED),
        )

    @property
    def identity_id(self) -> Optional[str]:
        return self._identity_id

    def fetch(self) -> dict:
        """
        Return credentials in botocore's refresh metadata format.

        Raises:
            CredentialsError: If the identity broker rejects the request
        """
        try:
            if self._identity_id is None:
                response = self._client.get_id(IdentityPoolId=self._identity_pool_id)
                self._identity_id = response["IdentityId"]

            response = self._client.get_credentials_for_identity(
                IdentityId=self._identity_id,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "Failed to obtain Cognito credentials",
                extra={"identity_pool_id": self._identity_pool_id, "error": str(e)}
            )
            raise CredentialsError(f"Credential exchange failed: {e}") from e

        credentials = response["Credentials"]

        logger.info(
            "Obtained Cognito credentials",
            extra={
                "identity_id": self._identity_id,
                "expires": credentials["Expiration"].isoformat(),
            }
        )

        return {
            "access_key": credentials["AccessKeyId"],
            "secret_key": credentials["SecretKey"],
            "token": credentials["SessionToken"],
            "expiry_time": credentials["Expiration"].isoformat(),
        }


def create_boto3_session(
    settings: Settings,
    fetcher: Optional[CognitoCredentialFetcher] = None,
) -> boto3.Session:
    """
    Build the boto3 session every uploader client is created from.

    With an identity pool configured, credentials are fetched immediately
    (so a misconfigured pool fails at start-up) and refreshed by botocore
    before they expire.
    """
    if not settings.uses_cognito:
        return boto3.Session(
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region,
        )

    fetcher = fetcher or CognitoCredentialFetcher(
        settings.cognito_identity_pool_id,
        settings.aws_region,
    )
    credentials = RefreshableCredentials.create_from_metadata(
        metadata=fetcher.fetch(),
        refresh_using=fetcher.fetch,
        method="cognito-identity",
    )

    core_session = botocore.session.get_session()
    # botocore has no public setter for session credentials. get_credentials()
    # returns Session._credentials when set, so refresh keeps working through it.
    core_session._credentials = credentials

    return boto3.Session(botocore_session=core_session, region_name=settings.aws_region)
