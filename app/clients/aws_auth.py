"""AWS SigV4 request signing for Elasticsearch domains behind IAM."""

from typing import Optional

import boto3
import requests
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest

# only these headers take part in the signature; hop-by-hop headers may be rewritten in transit
SIGNED_HEADERS = ("content-type", "content-encoding", "x-amz-content-sha256")


class AWSSigV4Auth(requests.auth.AuthBase):
    """Re-sign every outbound ``requests`` call with the current credentials."""

    def __init__(self, region: str, service: str = "es", profile: Optional[str] = None):
        self.region = region
        self.service = service
        self._session = boto3.Session(profile_name=profile, region_name=region)

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        credentials = self._session.get_credentials()
        if credentials is None:
            raise RuntimeError("no AWS credentials available for request signing")

        headers = {k: v for k, v in r.headers.items() if k.lower() in SIGNED_HEADERS}
        aws_request = AWSRequest(method=r.method, url=r.url, data=r.body or b"", headers=headers)
        SigV4Auth(credentials.get_frozen_credentials(), self.service, self.region).add_auth(aws_request)

        r.headers.update(dict(aws_request.headers.items()))
        return r
