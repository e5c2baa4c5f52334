"""Resolvers turn raw dependencies into fully qualified targets."""

from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from srcdeps.data import RawDependency, RepositoryConfig, ResolvedTarget
from srcdeps.index import IndexEntry, IndexLookupError, PackageIndex
from srcdeps.logging import get_logger

if TYPE_CHECKING:
    from srcdeps.job import JobContext

logger = get_logger("Resolver")


class ResolutionError(RuntimeError):
    """A single dependency could not be resolved."""

    def __init__(self, reference: str, reason: str = "") -> None:
        msg = f"unable to resolve {reference!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.reference = reference
        self.reason = reason


def cache_key(payload: Any) -> str:
    """The resolution cache key of a raw dependency payload."""
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class ResolveCache:
    """Memo of resolved targets keyed by raw dependency payload.

    The first target stored for a key is authoritative: later ``put`` calls for the same key
    return the stored target instead of replacing it. A single lock guards the map and is never
    held while a target is being computed.

    Without coalescing, concurrent callers missing the cache for the same key each compute the
    target; only the first result is kept. With ``coalesce=True`` the first caller computes the
    target and the others wait for its result.
    """

    def __init__(self, coalesce: bool = False) -> None:
        self._entries: Dict[str, ResolvedTarget] = {}
        self._inflight: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self._coalesce = coalesce

    def get(self, key: str) -> Optional[ResolvedTarget]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, target: ResolvedTarget) -> ResolvedTarget:
        with self._lock:
            return self._entries.setdefault(key, target)

    def get_or_compute(self, key: str, compute: Callable[[], ResolvedTarget]) -> ResolvedTarget:
        """Return the cached target for ``key``, computing and storing it on a miss."""
        if not self._coalesce:
            hit = self.get(key)
            if hit is not None:
                return hit
            return self.put(key, compute())

        with self._lock:
            hit = self._entries.get(key)
            if hit is not None:
                return hit
            fut = self._inflight.get(key)
            owner = fut is None
            if owner:
                fut = Future()
                self._inflight[key] = fut
        if not owner:
            return fut.result()

        try:
            target = self.put(key, compute())
        except BaseException as e:
            fut.set_exception(e)
            raise
        else:
            fut.set_result(target)
            return target
        finally:
            with self._lock:
                self._inflight.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries


class Resolver(ABC):
    """Abstract base class of dependency resolvers. One resolver is registered per target type."""

    @abstractmethod
    def resolve(
        self, dep: RawDependency, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> ResolvedTarget:
        """Resolve ``dep`` to its target.

        Parameters
        ----------
        dep : RawDependency
            The raw dependency to resolve.
        repo_config : RepositoryConfig
            The configuration of the repository declaring the dependency.
        ctx : JobContext
            The job being run.

        Returns
        -------
        ResolvedTarget
            The resolved target.

        Raises
        ------
        ResolutionError
            If the dependency cannot be resolved.
        """
        ...


class IndexResolver(Resolver):
    """Resolver for references that are either local to the repository or known to an index.

    Resolution proceeds as follows:

    1. A cache hit for the reference is returned as is.
    2. References inside the repository's own namespace are resolved locally, without lookups.
    3. Other references are looked up in the package index. The project URL has trailing
       slashes removed.
    4. Targets in a standard distribution are stamped with ``version_string`` and ``rev_spec``.
    5. Looked up targets are stored in the cache before being returned.

    Subclasses map references and index entries to targets for their toolchain.
    """

    def __init__(
        self,
        index: PackageIndex,
        version_string: str = "",
        rev_spec: str = "",
        coalesce: bool = False,
    ) -> None:
        self.index = index
        self.version_string = version_string
        self.rev_spec = rev_spec
        self.cache = ResolveCache(coalesce=coalesce)

    def reference(self, dep: RawDependency) -> str:
        """The lookup reference of ``dep``. Defaults to the payload itself."""
        if not isinstance(dep.target, str) or not dep.target:
            raise ResolutionError(repr(dep.target), "target must be a non-empty string")
        return dep.target

    @abstractmethod
    def resolve_local(
        self, reference: str, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> Optional[ResolvedTarget]:
        """Resolve ``reference`` inside the repository, or return None if it is not local."""
        ...

    @abstractmethod
    def target_from_entry(self, reference: str, entry: IndexEntry) -> ResolvedTarget:
        """Build the target for ``reference`` from its (normalized) index entry."""
        ...

    def resolve(
        self, dep: RawDependency, repo_config: RepositoryConfig, ctx: "JobContext"
    ) -> ResolvedTarget:
        reference = self.reference(dep)
        key = cache_key(dep.target)

        hit = self.cache.get(key)
        if hit is not None:
            logger.debug(f"Resolve cache hit for {reference!r}")
            return hit

        local = self.resolve_local(reference, repo_config, ctx)
        if local is not None:
            return local

        return self.cache.get_or_compute(key, lambda: self._lookup(reference))

    def _lookup(self, reference: str) -> ResolvedTarget:
        try:
            entry = self.index.lookup(reference)
        except IndexLookupError as e:
            raise ResolutionError(reference, str(e)) from e
        entry = entry.normalized()

        target = self.target_from_entry(reference, entry)
        if entry.standard:
            target = target.model_copy(
                update={"to_version_string": self.version_string, "to_rev_spec": self.rev_spec}
            )
        return target
