from .cache import CachePort
from .domain_resolver import DomainResolverPort
from .hop_resolver import HopResolverPort
from .link_validator import LinkValidatorPort
from .mechanism import MechanismResolverPort
from .metadata import MetadataPort
from .resolution_cache import ResolutionCachePort
from .site_adapter import SiteAdapterPort

__all__ = [
    "CachePort",
    "DomainResolverPort",
    "HopResolverPort",
    "LinkValidatorPort",
    "MechanismResolverPort",
    "MetadataPort",
    "ResolutionCachePort",
    "SiteAdapterPort",
]
