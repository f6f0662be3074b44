"""
Handle to a binary successfully transferred to the asset provider.
"""
from typing import Optional


class AssetReference:

    def __init__(self, resource_type: str, public_id: str, secure_url: str, bytes: Optional[int] = None):
        self.resource_type = resource_type
        self.public_id = public_id
        self.secure_url = secure_url
        self.bytes = bytes

    def __eq__(self, other):
        if not isinstance(other, AssetReference):
            return NotImplemented
        return (self.resource_type, self.public_id, self.secure_url) == (other.resource_type, other.public_id, other.secure_url)

    def __hash__(self):
        return hash((self.resource_type, self.public_id, self.secure_url))

    def __repr__(self):
        return f"AssetReference(resource_type={self.resource_type}, public_id={self.public_id})"
