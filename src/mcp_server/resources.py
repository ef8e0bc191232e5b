"""Resource Registry for the MCP Server.

Holds literal (exact-URI) resources and URI-template resources, and
resolves an incoming URI to its handler plus any placeholder values bound
by the matching template.
"""

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Union

from shared.errors import AmbiguousTemplate, DuplicateResource
from shared.logging import get_logger
from shared.models import Resource, ResourceContents, ResourceTemplate, is_placeholder

logger = get_logger(__name__)


# A handler receives the requested URI and the placeholder values bound by
# the template (empty for literal resources).
ResourceHandler = Callable[
    [str, dict[str, str]],
    Union[list[ResourceContents], Awaitable[list[ResourceContents]]],
]


@dataclass(frozen=True)
class ResourceMatch:
    """Result of resolving a URI."""
    descriptor: Union[Resource, ResourceTemplate]
    handler: ResourceHandler
    placeholders: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class _TemplateEntry:
    template: ResourceTemplate
    handler: ResourceHandler
    segments: tuple[str, ...]

    def match(self, uri: str) -> Optional[dict[str, str]]:
        """Bind placeholders against a concrete URI, or None on mismatch."""
        parts = uri.split("/")
        if len(parts) != len(self.segments):
            return None

        bound: dict[str, str] = {}
        for pattern_segment, segment in zip(self.segments, parts):
            if is_placeholder(pattern_segment):
                if not segment:
                    return None
                bound[pattern_segment[1:-1]] = segment
            elif pattern_segment != segment:
                return None
        return bound

    def overlaps(self, other: "_TemplateEntry") -> bool:
        """True if some concrete URI could match both templates."""
        if len(self.segments) != len(other.segments):
            return False
        return all(
            is_placeholder(a) or is_placeholder(b) or a == b
            for a, b in zip(self.segments, other.segments)
        )


class ResourceRegistry:
    """
    Registry of literal and template resources.

    Registration happens once at startup; afterwards the registry is only
    read. Ambiguous registrations are rejected so that at most one entry
    matches any concrete URI.
    """

    def __init__(self) -> None:
        self._literals: dict[str, tuple[Resource, ResourceHandler]] = {}
        self._templates: list[_TemplateEntry] = []

    def register_literal(self, resource: Resource, handler: ResourceHandler) -> None:
        """
        Register an exact-URI resource.

        Raises:
            DuplicateResource: If the URI is already registered
            AmbiguousTemplate: If a registered template already matches the URI
        """
        if resource.uri in self._literals:
            raise DuplicateResource(resource.uri)

        for entry in self._templates:
            if entry.match(resource.uri) is not None:
                raise AmbiguousTemplate(entry.template.pattern, resource.uri)

        self._literals[resource.uri] = (resource, handler)
        logger.info("Resource registered", uri=resource.uri)

    def register_template(self, template: ResourceTemplate, handler: ResourceHandler) -> None:
        """
        Register a URI-template resource.

        Raises:
            AmbiguousTemplate: If the pattern could match a URI already claimed
                by a literal resource or another template
        """
        entry = _TemplateEntry(
            template=template,
            handler=handler,
            segments=tuple(template.pattern.split("/")),
        )

        for uri in self._literals:
            if entry.match(uri) is not None:
                raise AmbiguousTemplate(template.pattern, uri)

        for existing in self._templates:
            if entry.overlaps(existing):
                raise AmbiguousTemplate(template.pattern, existing.template.pattern)

        self._templates.append(entry)
        logger.info(
            "Resource template registered",
            pattern=template.pattern,
            placeholders=template.placeholders
        )

    def resolve(self, uri: str) -> Optional[ResourceMatch]:
        """
        Resolve a URI to its handler.

        Exact URIs are tried first, then templates in registration order.
        Percent-encoded text is passed through undecoded.

        Returns:
            ResourceMatch if found, None otherwise
        """
        literal = self._literals.get(uri)
        if literal is not None:
            resource, handler = literal
            return ResourceMatch(descriptor=resource, handler=handler)

        for entry in self._templates:
            bound = entry.match(uri)
            if bound is not None:
                return ResourceMatch(
                    descriptor=entry.template,
                    handler=entry.handler,
                    placeholders=bound,
                )

        return None

    def list_resources(self) -> list[Resource]:
        """List literal resources in registration order."""
        return [resource for resource, _ in self._literals.values()]

    def list_templates(self) -> list[ResourceTemplate]:
        """List resource templates in registration order."""
        return [entry.template for entry in self._templates]
