"""
Validation layer.

Turns raw payloads into typed, normalized values or a list of field-level
violations. Validators never raise and never touch the store; the request
pipeline turns a failed result into ValidationFailed through `require_valid`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, Mapping, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from codex_cms.content.blocks import narrow_block_data
from codex_cms.content.sanitize import sanitize_block_data, unwrap_editor_payload
from codex_cms.content.schemas import (
    ENTITY_SCHEMAS,
    MAX_PAGE_SIZE,
    BlockCreateInput,
    BlockDescriptor,
    BlockListInput,
    CamelModel,
    EntityInput,
    Pagination,
    Slug,
)
from codex_cms.content.types import DEFAULT_LOCALE, EntityKind, Locale, PublishStatus
from codex_cms.kernel.errors import ValidationFailed

T = TypeVar("T")


@dataclass(frozen=True)
class FieldViolation:
    field: str
    message: str
    code: str = "invalid"

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message, "code": self.code}


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    value: T | None = None
    errors: tuple[FieldViolation, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.errors

    @classmethod
    def success(cls, value: T) -> "ValidationResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, errors: Iterable[FieldViolation]) -> "ValidationResult[T]":
        return cls(errors=tuple(errors))


def _join_loc(prefix: str, loc: Iterable[Any]) -> str:
    parts = [prefix] if prefix else []
    parts.extend(str(part) for part in loc)
    return ".".join(parts)


def _violations_from(exc: PydanticValidationError, *, prefix: str = "") -> list[FieldViolation]:
    return [
        FieldViolation(
            field=_join_loc(prefix, err.get("loc", ())),
            message=str(err.get("msg", "Invalid value")),
            code=str(err.get("type", "invalid")),
        )
        for err in exc.errors()
    ]


def parse_model(schema: type[BaseModel], payload: Any) -> ValidationResult[Any]:
    if not isinstance(payload, Mapping):
        return ValidationResult.failure(
            [FieldViolation(field="body", message="Request body must be a JSON object", code="type_error")]
        )
    try:
        return ValidationResult.success(schema.model_validate(dict(payload)))
    except PydanticValidationError as exc:
        return ValidationResult.failure(_violations_from(exc))


def _normalize_blocks(
    descriptors: list[BlockDescriptor], *, prefix: str, check_orders: bool
) -> tuple[list[BlockDescriptor], list[FieldViolation]]:
    """Unwrap each payload, narrow it through its tag schema, then sanitize it."""
    normalized: list[BlockDescriptor] = []
    errors: list[FieldViolation] = []
    seen_orders: dict[int, int] = {}

    for index, descriptor in enumerate(descriptors):
        where = f"{prefix}.{index}" if prefix else str(index)
        data = unwrap_editor_payload(descriptor.data)
        declared = data.get("type")
        if declared is not None and declared != descriptor.type.value:
            errors.append(
                FieldViolation(
                    field=f"{where}.data.type",
                    message=f"Payload type {declared!r} does not match block type {descriptor.type.value!r}",
                    code="block.type_mismatch",
                )
            )
            continue
        try:
            narrowed = narrow_block_data(descriptor.type, data)
        except PydanticValidationError as exc:
            errors.extend(_violations_from(exc, prefix=f"{where}.data"))
            continue

        if check_orders and descriptor.order is not None:
            if descriptor.order in seen_orders:
                errors.append(
                    FieldViolation(
                        field=f"{where}.order",
                        message=f"order {descriptor.order} is already used by entry {seen_orders[descriptor.order]}",
                        code="block.duplicate_order",
                    )
                )
                continue
            seen_orders[descriptor.order] = index

        normalized.append(descriptor.model_copy(update={"data": sanitize_block_data(narrowed)}))
    return normalized, errors


def validate_entity(kind: EntityKind, payload: Any) -> ValidationResult[EntityInput]:
    """Validate a whole-entity create/update body for `kind`."""
    parsed = parse_model(ENTITY_SCHEMAS[kind], payload)
    if not parsed.ok:
        return parsed

    value = parsed.value
    blocks = getattr(value, "blocks", None)
    if blocks is None:
        return parsed

    # Whole-entity saves assign order by position, so explicit orders are ignored.
    normalized, errors = _normalize_blocks(blocks, prefix="blocks", check_orders=False)
    if errors:
        return ValidationResult.failure(errors)
    return ValidationResult.success(value.model_copy(update={"blocks": normalized}))


def validate_block_list(payload: Any) -> ValidationResult[list[BlockDescriptor]]:
    """Validate a block-set replacement body: `{"blocks": [...]}` or a bare list."""
    if isinstance(payload, list):
        payload = {"blocks": payload}
    parsed = parse_model(BlockListInput, payload)
    if not parsed.ok:
        return parsed

    normalized, errors = _normalize_blocks(parsed.value.blocks, prefix="blocks", check_orders=True)
    if errors:
        return ValidationResult.failure(errors)

    explicit = [d.order is not None for d in normalized]
    if any(explicit) and not all(explicit):
        return ValidationResult.failure(
            [
                FieldViolation(
                    field="blocks",
                    message="Either every block sets order or none does",
                    code="block.mixed_order",
                )
            ]
        )
    return ValidationResult.success(normalized)


def validate_block_create(payload: Any) -> ValidationResult[BlockCreateInput]:
    """Validate a single-block create. Exactly one parent reference must be set."""
    parsed = parse_model(BlockCreateInput, payload)
    if not parsed.ok:
        return parsed

    value: BlockCreateInput = parsed.value
    errors: list[FieldViolation] = []
    if len(value.parent_refs()) != 1:
        errors.append(
            FieldViolation(
                field="parent",
                message="Exactly one of pageId, postId, caseId must be set",
                code="block.parent_exactly_one",
            )
        )

    normalized, block_errors = _normalize_blocks([value], prefix="", check_orders=False)
    errors.extend(
        FieldViolation(field=e.field.removeprefix("0."), message=e.message, code=e.code)
        for e in block_errors
    )
    if errors:
        return ValidationResult.failure(errors)
    return ValidationResult.success(normalized[0])


def validate_block_update(payload: Any) -> ValidationResult[BlockDescriptor]:
    """Validate a single-block full update (type, data, optional order)."""
    parsed = parse_model(BlockDescriptor, payload)
    if not parsed.ok:
        return parsed
    normalized, errors = _normalize_blocks([parsed.value], prefix="", check_orders=False)
    if errors:
        return ValidationResult.failure(
            FieldViolation(field=e.field.removeprefix("0."), message=e.message, code=e.code)
            for e in errors
        )
    return ValidationResult.success(normalized[0])


def _coerce_int(raw: Any, name: str) -> tuple[int | None, FieldViolation | None]:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None, None
    try:
        return int(str(raw).strip()), None
    except ValueError:
        return None, FieldViolation(field=name, message=f"{name} must be an integer", code="int_parsing")


def validate_pagination(params: Mapping[str, Any], *, default_limit: int) -> ValidationResult[Pagination]:
    """Coerce `limit`/`offset`/`page` query strings.

    `limit` defaults to `default_limit` and must lie in [1, 100]; `offset`
    defaults to 0 and must be >= 0. `page` (1-based) is accepted instead of
    `offset`.
    """
    errors: list[FieldViolation] = []
    limit, err = _coerce_int(params.get("limit"), "limit")
    if err:
        errors.append(err)
    offset, err = _coerce_int(params.get("offset"), "offset")
    if err:
        errors.append(err)
    page, err = _coerce_int(params.get("page"), "page")
    if err:
        errors.append(err)
    if errors:
        return ValidationResult.failure(errors)

    limit = default_limit if limit is None else limit
    if not 1 <= limit <= MAX_PAGE_SIZE:
        errors.append(
            FieldViolation(field="limit", message=f"limit must be between 1 and {MAX_PAGE_SIZE}", code="out_of_range")
        )
    if offset is not None and offset < 0:
        errors.append(FieldViolation(field="offset", message="offset must be >= 0", code="out_of_range"))
    if page is not None and page < 1:
        errors.append(FieldViolation(field="page", message="page must be >= 1", code="out_of_range"))
    if errors:
        return ValidationResult.failure(errors)

    if offset is None:
        offset = (page - 1) * limit if page is not None else 0
    return ValidationResult.success(Pagination(limit=limit, offset=offset))


class ListFilters(CamelModel):
    locale: Locale | None = None
    status: PublishStatus | None = None
    slug: Slug | None = None


def validate_list_filters(params: Mapping[str, Any]) -> ValidationResult[ListFilters]:
    """Optional `locale`/`status`/`slug` filters of an admin list. Blank values are ignored."""
    present = {
        key: value
        for key, value in params.items()
        if key in {"locale", "status", "slug"} and value not in (None, "")
    }
    return parse_model(ListFilters, present)


def validate_locale(raw: Any, *, field_name: str = "locale") -> ValidationResult[Locale]:
    """A single locale value; absent means the default locale."""
    if raw is None or raw == "":
        return ValidationResult.success(DEFAULT_LOCALE)
    try:
        return ValidationResult.success(Locale(raw))
    except ValueError:
        allowed = ", ".join(locale.value for locale in Locale)
        return ValidationResult.failure(
            [FieldViolation(field=field_name, message=f"locale must be one of: {allowed}", code="enum")]
        )


def require_valid(result: ValidationResult[T]) -> T:
    """Unwrap a result at the pipeline boundary, raising ValidationFailed on violations."""
    if not result.ok:
        raise ValidationFailed(errors=[violation.to_dict() for violation in result.errors])
    return result.value
