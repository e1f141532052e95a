"""Load declared plugins and collect their contributions in declaration order.

A plugin is a contribution function called with a :class:`PluginContext`. It
returns a :class:`PluginContribution` (or a mapping with ``theme`` and
``utilities`` keys, or ``None``). Theme fragments are later folded through the
additive extend path so a later plugin can replace an earlier plugin's keys;
utility rules accumulate and are never overridden.

Examples
--------
>>> def forms(context):
...     return {"theme": {"colors": {"field": "#fff"}}}
>>> registered = register_plugins(
...     [PluginReference(name="forms")], catalog={"forms": forms}
... )
>>> registered.merged_theme()
{'colors': {'field': '#fff'}}
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import importlib
import logging
import types
import typing as typ

from .config.helpers import _is_sequence
from .config.models import PluginReference
from .errors import DuplicatePluginError, PluginFailureError
from .theme import freeze_tree, merge_extensions

logger = logging.getLogger(__name__)

ContributionFunction = cabc.Callable[["PluginContext"], typ.Any]


@dc.dataclass(frozen=True, slots=True)
class PluginContext:
    """The only surface a contribution function receives."""

    name: str
    position: int
    options: cabc.Mapping[str, typ.Any]


@dc.dataclass(frozen=True, slots=True)
class UtilityRule:
    """An opaque class-generation rule contributed by a plugin.

    Attributes
    ----------
    name : str
        Identifier of the utility family (for example ``"aspect-ratio"``).
    generator : Callable | Mapping
        Engine-specific payload; windconf never interprets it.
    plugin : str
        Name of the contributing plugin, filled in by the registry.
    """

    name: str
    generator: typ.Any = dc.field(compare=False)
    plugin: str = ""


@dc.dataclass(frozen=True, slots=True)
class PluginContribution:
    """What one plugin adds to the build."""

    theme: cabc.Mapping[str, typ.Any] = dc.field(
        default_factory=lambda: types.MappingProxyType({})
    )
    utilities: tuple[UtilityRule, ...] = ()


@dc.dataclass(frozen=True, slots=True)
class PluginDescriptor:
    """A loaded plugin awaiting execution."""

    name: str
    position: int
    options: cabc.Mapping[str, typ.Any]
    contribute: ContributionFunction = dc.field(compare=False, repr=False)


@dc.dataclass(frozen=True, slots=True)
class RegisteredPlugin:
    """A plugin whose contribution function completed successfully."""

    name: str
    position: int
    contribution: PluginContribution


@dc.dataclass(frozen=True, slots=True)
class OrderedPluginSet:
    """Plugins in declaration order alongside their collected contributions."""

    plugins: tuple[RegisteredPlugin, ...] = ()

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(plugin.name for plugin in self.plugins)

    @property
    def theme_fragments(self) -> tuple[cabc.Mapping[str, typ.Any], ...]:
        """Return non-empty theme fragments in declaration order."""
        return tuple(
            plugin.contribution.theme
            for plugin in self.plugins
            if plugin.contribution.theme
        )

    @property
    def utilities(self) -> tuple[UtilityRule, ...]:
        """Return every contributed utility rule, in declaration order."""
        return tuple(
            rule for plugin in self.plugins for rule in plugin.contribution.utilities
        )

    def merged_theme(self) -> dict[str, dict[str, typ.Any]]:
        """Fold all plugin theme fragments through the additive extend path."""
        return merge_extensions(*self.theme_fragments)


def register_plugins(
    references: cabc.Iterable[PluginReference],
    *,
    catalog: cabc.Mapping[str, ContributionFunction] | None = None,
) -> OrderedPluginSet:
    """Load and run every declared plugin in order.

    Parameters
    ----------
    references : Iterable[PluginReference]
        Plugins as declared in the config.
    catalog : Mapping[str, Callable] | None, optional
        Named contribution functions available to the build. Names missing
        from the catalog are imported as ``package.module:attribute``.

    Returns
    -------
    OrderedPluginSet
        Successfully registered plugins in declaration order.

    Raises
    ------
    DuplicatePluginError
        If two references share an identity. Raised before any plugin runs.
    PluginFailureError
        If a plugin cannot be loaded, raises, or returns a malformed result.
    """
    ordered = list(references)
    _reject_duplicates(ordered)
    descriptors = [
        PluginDescriptor(
            name=reference.name,
            position=position,
            options=freeze_tree(dict(reference.options)),
            contribute=_load(reference, catalog or {}),
        )
        for position, reference in enumerate(ordered)
    ]

    registered: list[RegisteredPlugin] = []
    for descriptor in descriptors:
        contribution = _run(descriptor)
        registered.append(
            RegisteredPlugin(descriptor.name, descriptor.position, contribution)
        )
    logger.debug("Registered plugins in order: %s", [p.name for p in registered])
    return OrderedPluginSet(tuple(registered))


def _reject_duplicates(references: cabc.Sequence[PluginReference]) -> None:
    seen: dict[str, int] = {}
    for position, reference in enumerate(references):
        if reference.name in seen:
            raise DuplicatePluginError(reference.name, (seen[reference.name], position))
        seen[reference.name] = position


def _load(
    reference: PluginReference, catalog: cabc.Mapping[str, ContributionFunction]
) -> ContributionFunction:
    if reference.target is not None:
        return reference.target
    if reference.name in catalog:
        return catalog[reference.name]
    module_name, sep, attribute = reference.name.partition(":")
    if not sep or not module_name or not attribute:
        msg = "not found in the plugin catalog and not a 'module:attribute' path"
        raise PluginFailureError(reference.name, msg)
    try:
        target: typ.Any = importlib.import_module(module_name)
        for part in attribute.split("."):
            target = getattr(target, part)
    except Exception as exc:
        raise PluginFailureError(reference.name, exc) from exc
    if not callable(target):
        raise PluginFailureError(reference.name, "import target is not callable")
    return typ.cast("ContributionFunction", target)


def _run(descriptor: PluginDescriptor) -> PluginContribution:
    """Execute one plugin; any failure aborts registration without side effects."""
    context = PluginContext(descriptor.name, descriptor.position, descriptor.options)
    try:
        result = descriptor.contribute(context)
        return _normalise(descriptor.name, result)
    except PluginFailureError:
        raise
    except Exception as exc:
        raise PluginFailureError(descriptor.name, exc) from exc


def _normalise(name: str, result: object) -> PluginContribution:
    match result:
        case None:
            return PluginContribution()
        case PluginContribution():
            theme, utilities = result.theme, result.utilities
        case cabc.Mapping():
            unknown = set(result) - {"theme", "utilities"}
            if unknown:
                msg = f"unexpected contribution keys {sorted(unknown)}"
                raise PluginFailureError(name, msg)
            theme = result.get("theme") or {}
            utilities = result.get("utilities") or ()
        case _:
            msg = f"contribution must be a mapping, got {type(result).__name__}"
            raise PluginFailureError(name, msg)

    if not isinstance(theme, cabc.Mapping) or not all(
        isinstance(tokens, cabc.Mapping) for tokens in theme.values()
    ):
        raise PluginFailureError(name, "theme fragment must map categories to mappings")
    if not _is_sequence(utilities):
        raise PluginFailureError(name, "utilities must be a sequence")
    rules = tuple(_coerce_rule(name, rule) for rule in utilities)
    return PluginContribution(theme=freeze_tree(theme), utilities=rules)


def _coerce_rule(plugin: str, rule: object) -> UtilityRule:
    match rule:
        case UtilityRule():
            return dc.replace(rule, plugin=plugin)
        case cabc.Mapping() if isinstance(rule.get("name"), str):
            return UtilityRule(rule["name"], rule.get("generator"), plugin)
        case _:
            msg = f"malformed utility rule {rule!r}"
            raise PluginFailureError(plugin, msg)


__all__ = [
    "ContributionFunction",
    "OrderedPluginSet",
    "PluginContext",
    "PluginContribution",
    "PluginDescriptor",
    "RegisteredPlugin",
    "UtilityRule",
    "register_plugins",
]
