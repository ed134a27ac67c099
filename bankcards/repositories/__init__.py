"""
Repositories: the persistence boundary used by the services.

Each repository wraps the request's AsyncSession and exposes simple
lookup/save operations. They never commit; get_db() owns the transaction.
"""

from bankcards.repositories.user_repository import UserRepository  # noqa: F401
from bankcards.repositories.card_repository import CardRepository  # noqa: F401
from bankcards.repositories.transfer_repository import TransferRepository  # noqa: F401
from bankcards.repositories.block_request_repository import BlockRequestRepository  # noqa: F401
