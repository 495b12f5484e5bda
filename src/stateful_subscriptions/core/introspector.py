"""
Subscription query introspection.

Pure functions over graphql-core ASTs:

1. parse_subscription_query:
   "subscription { Feed: onItems(offset: 3) { id data { body } } }"
   -> QueryInfo(name="onItems", alias="Feed", fields=["id", "body"], params={"offset": 3})

2. extract_result_key_info:
   {"Feed": {"id": "a", "offset": 4}}
   -> ResultKeyInfo(root_name="Feed", data={"id": "a", "offset": 4})

No registry state lives here.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Optional

from graphql import GraphQLSyntaxError, parse
from graphql.language import (
    ArgumentNode,
    BooleanValueNode,
    DocumentNode,
    FieldNode,
    FloatValueNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    IntValueNode,
    ListValueNode,
    NullValueNode,
    ObjectValueNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    StringValueNode,
    ValueNode,
    VariableNode,
)

from .errors import QuerySyntaxError
from .query_types import QueryInfo, ResultKeyInfo


TYPENAME_FIELD = "__typename"


# =============================================================================
# Argument values
# =============================================================================

ValueResolver = Callable[[Any, Mapping[str, Any]], Any]


def _resolve_int(node: IntValueNode, variables: Mapping[str, Any]) -> int:
    return int(node.value, 10)


def _resolve_float(node: FloatValueNode, variables: Mapping[str, Any]) -> float:
    return float(node.value)


def _resolve_verbatim(node: Any, variables: Mapping[str, Any]) -> Any:
    # StringValue and BooleanValue
    return node.value


def _resolve_null(node: NullValueNode, variables: Mapping[str, Any]) -> None:
    return None


def _resolve_list(node: ListValueNode, variables: Mapping[str, Any]) -> list[Any]:
    return [resolve_value(value, variables) for value in node.values]


def _resolve_object(node: ObjectValueNode, variables: Mapping[str, Any]) -> dict[str, Any]:
    return {field.name.value: resolve_value(field.value, variables) for field in node.fields}


def _resolve_variable(node: VariableNode, variables: Mapping[str, Any]) -> Any:
    # Unbound variables resolve to None
    return variables.get(node.name.value)


_VALUE_RESOLVERS: dict[type, ValueResolver] = {
    IntValueNode: _resolve_int,
    FloatValueNode: _resolve_float,
    StringValueNode: _resolve_verbatim,
    BooleanValueNode: _resolve_verbatim,
    NullValueNode: _resolve_null,
    ListValueNode: _resolve_list,
    ObjectValueNode: _resolve_object,
    VariableNode: _resolve_variable,
}


def resolve_value(node: ValueNode, variables: Optional[Mapping[str, Any]] = None) -> Any:
    """
    Resolve an argument value node to a concrete Python value.

    Unknown literal kinds (e.g. enum values) resolve to None.
    """
    resolver = _VALUE_RESOLVERS.get(type(node))
    if resolver is None:
        return None
    return resolver(node, variables or {})


def resolve_arguments(
    arguments: tuple[ArgumentNode, ...] | list[ArgumentNode],
    variables: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Resolve field arguments to an ordered name -> value dict."""
    return {arg.name.value: resolve_value(arg.value, variables) for arg in arguments or ()}


# =============================================================================
# Selections
# =============================================================================


def collect_fragments(document: DocumentNode) -> dict[str, FragmentDefinitionNode]:
    """Collect fragment definitions by name (last definition wins)."""
    return {
        definition.name.value: definition
        for definition in document.definitions
        if isinstance(definition, FragmentDefinitionNode)
    }


def extract_fields(
    selection_set: Optional[SelectionSetNode],
    fragments: Mapping[str, FragmentDefinitionNode],
) -> list[str]:
    """
    Flatten a selection set to its leaf field names.

    Nested objects contribute their leaves, fragment spreads are spliced in at
    their position, inline fragments contribute unconditionally. __typename is
    skipped. Duplicates are kept.
    """
    if selection_set is None:
        return []

    fields: list[str] = []

    for selection in selection_set.selections:
        if isinstance(selection, FieldNode):
            name = selection.name.value
            if name == TYPENAME_FIELD:
                continue
            if selection.selection_set is None:
                fields.append(name)
            else:
                fields.extend(extract_fields(selection.selection_set, fragments))

        elif isinstance(selection, FragmentSpreadNode):
            fragment = fragments.get(selection.name.value)
            if fragment is not None:
                fields.extend(extract_fields(fragment.selection_set, fragments))

        elif isinstance(selection, InlineFragmentNode):
            fields.extend(extract_fields(selection.selection_set, fragments))

    return fields


def _find_subscription(document: DocumentNode) -> Optional[OperationDefinitionNode]:
    for definition in document.definitions:
        if isinstance(definition, OperationDefinitionNode) and definition.operation == OperationType.SUBSCRIPTION:
            return definition
    return None


def _root_field(operation: OperationDefinitionNode) -> Optional[FieldNode]:
    for selection in operation.selection_set.selections:
        if isinstance(selection, FieldNode):
            return selection
    return None


# =============================================================================
# Public API
# =============================================================================


def parse_document(query: str) -> DocumentNode:
    """
    Parse query text into a GraphQL document.

    Raises:
        QuerySyntaxError: If the text is not valid GraphQL
    """
    if not isinstance(query, str):
        raise QuerySyntaxError(f"Query must be a string, got {type(query).__name__}")

    try:
        return parse(query)
    except GraphQLSyntaxError as e:
        locations = [(loc.line, loc.column) for loc in e.locations or []]
        raise QuerySyntaxError(e.message, locations) from e


def parse_subscription_query(
    query: str,
    variables: Optional[Mapping[str, Any]] = None,
) -> Optional[QueryInfo]:
    """
    Parse a subscription query into its normalized shape.

    Args:
        query: GraphQL document text
        variables: Variable bindings used to resolve $references in arguments

    Returns:
        QueryInfo, or None if the document has no subscription operation

    Raises:
        QuerySyntaxError: If the text is not valid GraphQL
    """
    document = parse_document(query)

    operation = _find_subscription(document)
    if operation is None:
        return None

    field = _root_field(operation)
    if field is None:
        return None

    variables = dict(variables or {})
    fragments = collect_fragments(document)

    return QueryInfo(
        name=field.name.value,
        alias=field.alias.value if field.alias else None,
        fields=extract_fields(field.selection_set, fragments),
        params=resolve_arguments(field.arguments, variables),
        variables=variables,
    )


def extract_result_key_info(result: Mapping[str, Any]) -> ResultKeyInfo:
    """
    Extract the response-root name and data object from a result payload.

    The payload is a single-key mapping {identity: data}. An empty or
    non-mapping payload yields ResultKeyInfo(root_name=None, data=None).
    """
    if not isinstance(result, Mapping) or not result:
        return ResultKeyInfo()

    root_name = next(iter(result))
    return ResultKeyInfo(root_name=root_name, data=result[root_name])
