"""Runtime construction of the controller's protobuf message classes.

The controller ships its schemas as ``.proto`` files. Each schema module in
this package describes the same messages as a list of :class:`Field` rows;
:func:`build_schema` turns them into a ``FileDescriptorProto``, registers it
in the default descriptor pool (where the well-known ``Any``, ``Empty``,
``Timestamp`` and ``Duration`` types already live) and returns the concrete
message classes.

Field numbers and types must match the controller's ``.proto`` files
exactly; they are the wire contract.
"""

from __future__ import annotations

from dataclasses import dataclass

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message

# Imported so the well-known types are present in the default pool.
from google.protobuf import any_pb2, duration_pb2, empty_pb2, timestamp_pb2  # noqa: F401

_FieldProto = descriptor_pb2.FieldDescriptorProto

SCALAR_TYPES: dict[str, int] = {
    "bool": _FieldProto.TYPE_BOOL,
    "int32": _FieldProto.TYPE_INT32,
    "int64": _FieldProto.TYPE_INT64,
    "uint32": _FieldProto.TYPE_UINT32,
    "uint64": _FieldProto.TYPE_UINT64,
    "string": _FieldProto.TYPE_STRING,
    "bytes": _FieldProto.TYPE_BYTES,
}

ANY = ".google.protobuf.Any"
EMPTY = ".google.protobuf.Empty"
TIMESTAMP = ".google.protobuf.Timestamp"
DURATION = ".google.protobuf.Duration"

WELL_KNOWN_FILES = {
    ANY: "google/protobuf/any.proto",
    EMPTY: "google/protobuf/empty.proto",
    TIMESTAMP: "google/protobuf/timestamp.proto",
    DURATION: "google/protobuf/duration.proto",
}


@dataclass(frozen=True)
class Field:
    """One field of a proto3 message.

    ``type`` is either a scalar name from :data:`SCALAR_TYPES` or a
    fully-qualified message name such as :data:`ANY`.
    """

    name: str
    number: int
    type: str
    oneof: str | None = None


def build_schema(
    filename: str,
    package: str,
    messages: dict[str, list[Field]],
) -> dict[str, type[Message]]:
    """Register a proto3 file and return its message classes by short name."""
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=filename, package=package, syntax="proto3"
    )
    dependencies: list[str] = []

    for message_name, fields in messages.items():
        message_proto = file_proto.message_type.add(name=message_name)
        oneofs: list[str] = []
        for field in fields:
            field_proto = message_proto.field.add(
                name=field.name,
                number=field.number,
                label=_FieldProto.LABEL_OPTIONAL,
            )
            if field.type in SCALAR_TYPES:
                field_proto.type = SCALAR_TYPES[field.type]
            elif field.type in WELL_KNOWN_FILES:
                field_proto.type = _FieldProto.TYPE_MESSAGE
                field_proto.type_name = field.type
                dependency = WELL_KNOWN_FILES[field.type]
                if dependency not in dependencies:
                    dependencies.append(dependency)
            else:
                raise ValueError(
                    f"Unsupported field type '{field.type}' for "
                    f"{package}.{message_name}.{field.name}"
                )
            if field.oneof is not None:
                if field.oneof not in oneofs:
                    oneofs.append(field.oneof)
                    message_proto.oneof_decl.add(name=field.oneof)
                field_proto.oneof_index = oneofs.index(field.oneof)

    file_proto.dependency.extend(dependencies)

    pool = descriptor_pool.Default()
    pool.AddSerializedFile(file_proto.SerializeToString())
    return {
        name: message_factory.GetMessageClass(
            pool.FindMessageTypeByName(f"{package}.{name}")
        )
        for name in messages
    }
