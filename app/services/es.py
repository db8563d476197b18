from elasticsearch import Elasticsearch
from app.core.config import settings
from app.clients.aws_auth import AWSSigV4Auth
from app.clients.elastic import ElasticClient

def build_es() -> ElasticClient:
    auth_kwargs = {}
    if settings.AWS_SIGNER:
        # SigV4 signing needs the requests transport so the auth hook sees every request
        auth_kwargs["node_class"] = "requests"
        auth_kwargs["http_auth"] = AWSSigV4Auth(
            settings.AWS_REGION, settings.AWS_SERVICE, settings.AWS_PROFILE
        )
        if settings.AWS_TLS_INSECURE_SKIP_VERIFY:
            auth_kwargs["verify_certs"] = False
    elif settings.ES_API_KEY:
        auth_kwargs["api_key"] = settings.ES_API_KEY
    elif settings.ES_USERNAME and settings.ES_PASSWORD:
        auth_kwargs["basic_auth"] = (settings.ES_USERNAME, settings.ES_PASSWORD)

    common_kwargs = dict(
        retry_on_timeout=True,
        max_retries=3,
        http_compress=True,
        connections_per_node=10,
        request_timeout=settings.ES_REQUEST_TIMEOUT,
        **auth_kwargs,
    )

    if not settings.ES_HOST:
        raise RuntimeError("No Elasticsearch connection configured. Set ES_HOST (+ credentials).")

    return ElasticClient(
        Elasticsearch(settings.ES_HOST, **common_kwargs),
        status_timeout=settings.HEALTHCHECK_CRITICAL_TIMEOUT,
        bulk_flush_items=settings.BULK_FLUSH_ITEMS,
        bulk_flush_bytes=settings.BULK_FLUSH_BYTES,
    )

es = build_es()
