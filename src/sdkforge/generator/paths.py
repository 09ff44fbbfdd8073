"""Map code artifacts to file locations under the output directory.

An artifact's location is derived, never stored: it is a pure function of
``outputDir``, the artifact's namespace relative to the root namespace and
its class name. ``App\\Resource\\Users`` under root namespace ``App`` and
output directory ``./build`` lands in ``build/Resource/Users.py``.

:func:`resolve_output_path` never deduplicates. Detecting two artifacts that
share a path is the job of :func:`resolve_all`, which the pipeline calls
with the full artifact set of a run. Paths that differ only in case count
as shared, since they would be one file on a case-insensitive file system.
"""

from __future__ import annotations

from collections.abc import Iterable

from sdkforge.exceptions import GenerationError, PathCollisionError
from sdkforge.models import NAMESPACE_SEPARATOR, CodeArtifact, GeneratorConfig


def relative_namespace(namespace: str, config: GeneratorConfig) -> str:
    """Strip the root namespace from *namespace* when it is a prefix of it."""
    root = config.namespace
    if namespace == root:
        return ""
    if namespace.startswith(root + NAMESPACE_SEPARATOR):
        return namespace[len(root) + 1 :]
    return namespace


def module_segments(namespace: str, class_name: str, config: GeneratorConfig) -> list[str]:
    """Return the dotted module path of a class below the output root, as a list.

    Mirrors the file layout, so generated modules can import each other
    relatively.

    Example::

        >>> module_segments("App\\Resource", "Users", config)
        ['Resource', 'Users']
    """
    relative = relative_namespace(namespace, config)
    return [*(p for p in relative.split(NAMESPACE_SEPARATOR) if p), class_name]


def resolve_output_path(
    artifact: CodeArtifact, config: GeneratorConfig, extension: str = ".py"
) -> str:
    """Return the file path of *artifact*.

    Joins ``config.output_dir``, the relative namespace and the class name
    with ``/``, appends *extension*, converts namespace separators to ``/``,
    collapses separator runs and drops ``.`` segments.

    Example::

        >>> resolve_output_path(artifact, config)  # outputDir="./build/"
        'build/Resources/UserResource.py'
    """
    components = [
        config.output_dir,
        relative_namespace(artifact.namespace, config),
        artifact.class_name,
    ]
    path = ("/".join(components) + extension).replace(NAMESPACE_SEPARATOR, "/")
    return "/".join(s for s in path.split("/") if s and s != ".")


def resolve_all(
    artifacts: Iterable[CodeArtifact],
    config: GeneratorConfig,
    extension: str = ".py",
) -> list[tuple[CodeArtifact, str]]:
    """Resolve every artifact of a run, rejecting duplicates and collisions.

    Raises:
        GenerationError: If two artifacts share a ``(namespace, class_name)``
            identity. Checked before any path is resolved.
        PathCollisionError: If two distinct artifacts resolve to paths that
            are equal ignoring case.
    """
    artifacts = list(artifacts)

    seen: set[tuple[str, str]] = set()
    for artifact in artifacts:
        if artifact.identity in seen:
            raise GenerationError(f"Duplicate artifact {artifact.qualified_name}")
        seen.add(artifact.identity)

    by_path: dict[str, CodeArtifact] = {}
    resolved: list[tuple[CodeArtifact, str]] = []
    for artifact in artifacts:
        path = resolve_output_path(artifact, config, extension)
        # Case-insensitive file systems would merge these too.
        key = path.lower()
        if key in by_path:
            raise PathCollisionError(by_path[key].qualified_name, artifact.qualified_name, path)
        by_path[key] = artifact
        resolved.append((artifact, path))
    return resolved
