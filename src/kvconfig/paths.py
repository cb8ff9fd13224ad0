"""Config path resolution.

Persisted keys have the layout::

    <store path prefix>/<config prefix>/<component>/<config type>/<attribute>

The functions here build the config-relative part of that layout and
invert it again. The store path prefix is added and removed by the
backend adapter (see ``backend.Backend.make_path``).
"""

from .errors import InvalidComponentLabel, MalformedKey
from .interfaces import ConfigType

PATH_SEPARATOR = "/"

# Attribute names may contain the path separator. At the command line
# boundary it is written as ESCAPE_CHAR so the stored key stays one level deep.
ESCAPE_CHAR = "#"


def resolve_base_path(config_prefix: str, component_label: str, config_type: ConfigType) -> str:
    """Return ``<config prefix>/<component>/<config type>`` with no trailing separator."""
    return PATH_SEPARATOR.join((config_prefix, component_label, config_type.value))


def resolve_attribute_path(base_path: str, attribute: str) -> str:
    """Append an attribute name to a base path."""
    return base_path + PATH_SEPARATOR + attribute


def parse_component_from_key(raw_key: str, prefix: str, config_type: ConfigType) -> tuple[str, str]:
    """Split a full key back into its component label and attribute name.

    The key is split on the first occurrence of ``/<config type>/``; the
    part before it must start with ``prefix`` followed by a separator and
    the remainder is the component label. Everything after the config
    type segment is the attribute name, which may itself contain
    separators.

    Args:
        raw_key: Full key as returned by the store
        prefix: Path that precedes the component label, typically the
                store path prefix joined with the config prefix
        config_type: Config type whose segment delimits the component

    Returns:
        Tuple of (component label, attribute name)

    Raises:
        MalformedKey: If the key does not contain the config type segment,
                      does not start with the prefix, or would yield an
                      empty or multi-segment component label
    """
    marker = PATH_SEPARATOR + config_type.value + PATH_SEPARATOR
    head, found, attribute = raw_key.partition(marker)
    if not found:
        raise MalformedKey(raw_key, f"missing {marker!r} segment")

    lead = prefix.rstrip(PATH_SEPARATOR) + PATH_SEPARATOR
    if not head.startswith(lead):
        raise MalformedKey(raw_key, f"does not start with {lead!r}")

    component = head[len(lead):]
    if not component:
        raise MalformedKey(raw_key, "empty component label")
    # Labels never contain the separator, so the segment matched inside
    # an attribute of another config type.
    if PATH_SEPARATOR in component:
        raise MalformedKey(raw_key, f"component label {component!r} contains {PATH_SEPARATOR!r}")
    return component, attribute


def strip_prefix(key: str, prefix: str) -> str:
    """Remove ``prefix`` from ``key`` if present, otherwise return ``key`` unchanged."""
    if key.startswith(prefix):
        return key[len(prefix):]
    return key


def encode_attribute(name: str) -> str:
    """Escape path separators in an attribute name before it is stored."""
    return name.replace(PATH_SEPARATOR, ESCAPE_CHAR)


def decode_attribute(name: str) -> str:
    """Turn an escaped attribute name back into its display form."""
    return name.replace(ESCAPE_CHAR, PATH_SEPARATOR)


def validate_component_label(label: str, config_type: ConfigType) -> None:
    """Reject labels that would make ``parse_component_from_key`` ambiguous.

    Raises:
        InvalidComponentLabel: If the label is empty, contains the path
                               separator or contains the config type token
    """
    if not label or not label.strip():
        raise InvalidComponentLabel("component label cannot be empty")
    if PATH_SEPARATOR in label:
        raise InvalidComponentLabel(
            f"component label {label!r} cannot contain {PATH_SEPARATOR!r}"
        )
    if config_type.value in label:
        raise InvalidComponentLabel(
            f"component label {label!r} cannot contain config type token {config_type.value!r}"
        )
