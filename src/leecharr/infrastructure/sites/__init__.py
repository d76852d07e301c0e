from .base import HttpxSiteBase, SiteSettings
from .dramadrip import DramaDripSite
from .moviesmod import MoviesModSite
from .topmovies import TopMoviesSite
from .uhdmovies import UHDMoviesSite

SITE_CLASSES: dict[str, type[HttpxSiteBase]] = {
    cls.name: cls
    for cls in (UHDMoviesSite, MoviesModSite, TopMoviesSite, DramaDripSite)
}

__all__ = [
    "DramaDripSite",
    "HttpxSiteBase",
    "MoviesModSite",
    "SITE_CLASSES",
    "SiteSettings",
    "TopMoviesSite",
    "UHDMoviesSite",
]
