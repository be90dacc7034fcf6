"""Label schema used to discover the containers owned by Node ISP."""

from typing import Optional

from .constants import GROUP_LABEL, GROUP_LABEL_VALUE, HASH_LABEL, SERVICE_LABEL


def group_filter() -> dict[str, str]:
    """Labels carried by every container and network this system owns."""
    return {GROUP_LABEL: GROUP_LABEL_VALUE}


def service_filter(name: str, content_hash: Optional[str] = None) -> dict[str, str]:
    """Labels selecting the containers of one service, optionally of one hash."""
    labels = group_filter()
    labels[SERVICE_LABEL] = name
    if content_hash is not None:
        labels[HASH_LABEL] = content_hash
    return labels


def container_labels(name: str, content_hash: str) -> dict[str, str]:
    """Labels written on a container created for a service descriptor."""
    return service_filter(name, content_hash)
