"""Workflow document loading and validation.

Workflow documents are YAML files of the form::

    name: waterfall
    description: Classical waterfall development process
    initial_state: requirements
    metadata:
      domain: code
    states:
      requirements:
        description: Gather and analyze requirements
        default_instructions: Ask the user what they want to build...
        transitions:
          - trigger: requirements_complete
            to: design
            transition_reason: Requirements are complete
            additional_instructions: Summarize the requirements first.
            review_perspectives:
              - perspective: architect
                prompt: Are the requirements complete and testable?

This module is the only place raw parsed documents are seen. Everything it
returns is a frozen :class:`~vibe_workflows.core.definition.WorkflowDefinition`
whose structure has been checked.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from vibe_workflows.core.definition import (
    ReviewPerspective,
    StateDefinition,
    TransitionDefinition,
    WorkflowDefinition,
    WorkflowMetadata,
)
from vibe_workflows.exceptions import WorkflowValidationError

__all__ = ["WORKFLOW_SUFFIXES", "load_workflow", "load_workflow_file", "parse_workflow", "validate_document"]

logger = logging.getLogger(__name__)

WORKFLOW_SUFFIXES = (".yaml", ".yml")
"""File suffixes recognised as workflow documents."""

_REQUIRED_FIELDS = ("name", "description", "initial_state", "states")


def load_workflow(source: Path | str | Mapping[str, Any]) -> WorkflowDefinition:
    """Load a workflow from a file path, YAML text or a parsed mapping.

    Args:
        source: A :class:`~pathlib.Path` to a YAML file, a YAML string, or an
            already parsed mapping.

    Returns:
        The validated workflow definition.

    Raises:
        WorkflowValidationError: If the document cannot be parsed or is invalid.

    Example:
        >>> definition = load_workflow(Path(".vibe/workflow.yaml"))
        >>> definition.initial_state
        'explore'
    """
    if isinstance(source, Path):
        return load_workflow_file(source)
    if isinstance(source, str):
        return parse_workflow(_parse_yaml(source))
    return parse_workflow(source)


def load_workflow_file(path: Path) -> WorkflowDefinition:
    """Read and validate a workflow document from disk.

    Args:
        path: Path to the YAML file.

    Returns:
        The validated workflow definition.

    Raises:
        WorkflowValidationError: If the file is unreadable, not YAML, or invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise WorkflowValidationError([f"Cannot read workflow file: {e}"], source=str(path)) from e
    definition = parse_workflow(_parse_yaml(text, source=str(path)), source=str(path))
    logger.debug("workflow.loaded", extra={"workflow": definition.name, "path": str(path)})
    return definition


def parse_workflow(document: Any, source: str | None = None) -> WorkflowDefinition:
    """Validate a parsed document and build the workflow definition.

    Args:
        document: The parsed YAML document.
        source: Where the document came from, for error messages.

    Returns:
        The validated workflow definition.

    Raises:
        WorkflowValidationError: If the document is structurally invalid.
    """
    errors = validate_document(document)
    if errors:
        raise WorkflowValidationError(errors, source=source)

    states = {
        str(name): StateDefinition(
            description=state["description"],
            default_instructions=state["default_instructions"],
            transitions=tuple(_build_transition(raw) for raw in state.get("transitions") or ()),
        )
        for name, state in document["states"].items()
    }
    return WorkflowDefinition(
        name=document["name"],
        description=document["description"],
        initial_state=_initial_state(document),
        states=MappingProxyType(states),
        metadata=_build_metadata(document.get("metadata")),
    )


def validate_document(document: Any) -> list[str]:
    """Check a parsed workflow document for structural problems.

    Checks run in order: required top-level fields, initial state, per-state
    fields, transitions, and finally reachability from the initial state.

    Args:
        document: The parsed YAML document.

    Returns:
        List of validation error messages. Empty list if valid.
    """
    if not isinstance(document, Mapping):
        return ["Workflow document must be a mapping"]

    missing = [key for key in _REQUIRED_FIELDS if _missing(document, key)]
    if missing:
        return [f"Workflow is missing required properties: {', '.join(missing)}"]

    states = document["states"]
    if not isinstance(states, Mapping) or not states:
        return ["Workflow 'states' must be a non-empty mapping"]

    errors: list[str] = []

    initial_state = _initial_state(document)
    if initial_state not in states:
        errors.append(f"Initial state '{initial_state}' is not defined in states")

    for state_name, state in states.items():
        if not isinstance(state, Mapping) or not _text(state.get("description")) or not _text(
            state.get("default_instructions")
        ):
            errors.append(
                f"State '{state_name}' is missing required properties (description or default_instructions)"
            )
            continue

        transitions = state.get("transitions", [])
        if transitions is None:
            transitions = []
        if not isinstance(transitions, list):
            errors.append(f"State '{state_name}' has invalid transitions property")
            continue

        for index, transition in enumerate(transitions):
            if not isinstance(transition, Mapping):
                errors.append(f"State '{state_name}' transition {index} must be a mapping")
                continue
            target = transition.get("to")
            if not _text(transition.get("trigger")):
                errors.append(f"Transition {index} from '{state_name}' is missing trigger")
            if not _text(target) or target not in states:
                errors.append(f"State '{state_name}' has transition to unknown state '{target}'")
            if not _text(transition.get("transition_reason")):
                errors.append(f"Transition from '{state_name}' to '{target}' is missing transition_reason")
            errors.extend(_validate_perspectives(state_name, target, transition.get("review_perspectives")))

    if errors:
        return errors

    # Reachability from the initial state
    reachable = {initial_state}
    pending = [initial_state]
    while pending:
        for transition in states[pending.pop()].get("transitions") or ():
            if transition["to"] not in reachable:
                reachable.add(transition["to"])
                pending.append(transition["to"])
    errors.extend(f"State '{name}' is unreachable from initial state" for name in states if name not in reachable)

    return errors


def _parse_yaml(text: str, source: str | None = None) -> Any:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise WorkflowValidationError([f"Invalid YAML: {e}"], source=source) from e


def _initial_state(document: Mapping[str, Any]) -> str:
    return document.get("initial_state", document.get("initialState"))


def _missing(document: Mapping[str, Any], key: str) -> bool:
    if key == "initial_state":
        return not _text(_initial_state(document))
    value = document.get(key)
    if key == "states":
        return value is None
    return not _text(value)


def _text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _validate_perspectives(state_name: str, target: Any, perspectives: Any) -> list[str]:
    if perspectives is None:
        return []
    if not isinstance(perspectives, list) or not all(
        isinstance(item, Mapping) and _text(item.get("perspective")) and _text(item.get("prompt"))
        for item in perspectives
    ):
        return [f"Transition from '{state_name}' to '{target}' has invalid review_perspectives"]
    return []


def _build_transition(raw: Mapping[str, Any]) -> TransitionDefinition:
    return TransitionDefinition(
        trigger=raw["trigger"],
        to=raw["to"],
        transition_reason=raw["transition_reason"],
        instructions=raw.get("instructions") or None,
        additional_instructions=raw.get("additional_instructions") or None,
        review_perspectives=tuple(
            ReviewPerspective(perspective=item["perspective"], prompt=item["prompt"])
            for item in raw.get("review_perspectives") or ()
        ),
    )


def _build_metadata(raw: Any) -> WorkflowMetadata | None:
    if not isinstance(raw, Mapping):
        return None

    def _strings(key: str) -> tuple[str, ...]:
        value = raw.get(key) or ()
        if isinstance(value, str):
            return (value,)
        return tuple(str(item) for item in value)

    return WorkflowMetadata(
        domain=raw.get("domain"),
        complexity=raw.get("complexity"),
        best_for=_strings("bestFor") or _strings("best_for"),
        use_cases=_strings("useCases") or _strings("use_cases"),
        examples=_strings("examples"),
    )
