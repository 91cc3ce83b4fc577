# imgcache/__init__.py
"""On-demand, disk-backed resolver for images embedded in rendered content."""

from imgcache.core.media.resolver import ImageResolver
from imgcache.schemas.models import ImageRequest, ResolverPolicy

__version__ = "0.1.0"

__all__ = ["ImageResolver", "ImageRequest", "ResolverPolicy", "__version__"]
