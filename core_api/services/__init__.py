# Services package.
#
# Builds the default data-access service for each content type:
#
#   sanitize          strips non-writable attributes from input payloads
#   single_type       find / create_or_update / delete for single types
#   collection_type   find / find_one / count / create / update / delete /
#                     search / count_search for collection types
#   core_service      picks the right service for a schema and builds the
#                     per-content-type registry at startup
#
# Every service receives its entity service and sanitizer through the
# constructor; none of them hold entity state.
from core_api.services.collection_type import CollectionTypeService
from core_api.services.core_service import CoreService, build_services, create_core_service
from core_api.services.sanitize import Sanitizer, make_sanitizer, sanitize_input
from core_api.services.single_type import SingleTypeService

__all__ = [
    "CollectionTypeService",
    "CoreService",
    "Sanitizer",
    "SingleTypeService",
    "build_services",
    "create_core_service",
    "make_sanitizer",
    "sanitize_input",
]
