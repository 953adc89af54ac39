from dossiers_client_sdk.config import ConfigError, SDKConfig
from dossiers_client_sdk.errors import ApiError
from dossiers_client_sdk.http_client import HttpClient
from dossiers_client_sdk.listing_client import ListingClient, encode_query_params
from dossiers_client_sdk.models import Facets, PageResult
from dossiers_client_sdk.normalizers import ResponseAdapter
from dossiers_client_sdk.params import PaginationState, SortItem

__all__ = [
    "SDKConfig",
    "ConfigError",
    "ApiError",
    "HttpClient",
    "ListingClient",
    "encode_query_params",
    "Facets",
    "PageResult",
    "ResponseAdapter",
    "PaginationState",
    "SortItem",
]
