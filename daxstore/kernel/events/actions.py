"""
Action names written to the activity log.
"""

from daxstore.kernel.models.resource import ResourceKind

USER_CREATED = "user_created"
ACL_UPDATED = "acl_updated"
RDF_DATA_CLEARED = "rdf_data_cleared"


def saved(kind: ResourceKind) -> str:
    return f"{kind.value}_saved"


def deleted(kind: ResourceKind) -> str:
    return f"{kind.value}_deleted"
