from .management import ManagementAPI as ManagementAPI
from .management import get_operation_id as get_operation_id

__all__ = ["ManagementAPI", "get_operation_id"]
