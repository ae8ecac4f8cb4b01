"""
Protobuf messages of the chain's transaction wire format.

    message Transaction {
        string to = 1;
        string nonce = 2;
        uint64 quota = 3;
        uint64 valid_until_block = 4;
        bytes data = 5;
        bytes value = 6;
        uint32 chain_id = 7;
        uint32 version = 8;
    }

    enum Crypto {
        DEFAULT = 0;
        RESERVED = 1;
    }

    message UnverifiedTransaction {
        Transaction transaction = 1;
        bytes signature = 2;
        Crypto crypto = 3;
    }

The descriptors are registered in a private pool at import time, so there is
no generated ``_pb2`` module to keep in sync.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory


PACKAGE = "cita"

_Field = descriptor_pb2.FieldDescriptorProto

_TRANSACTION_FIELDS = [
    ("to", _Field.TYPE_STRING),
    ("nonce", _Field.TYPE_STRING),
    ("quota", _Field.TYPE_UINT64),
    ("valid_until_block", _Field.TYPE_UINT64),
    ("data", _Field.TYPE_BYTES),
    ("value", _Field.TYPE_BYTES),
    ("chain_id", _Field.TYPE_UINT32),
    ("version", _Field.TYPE_UINT32),
]


def _file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="cita/blockchain.proto",
        package=PACKAGE,
        syntax="proto3",
    )

    transaction = file_proto.message_type.add(name="Transaction")
    for number, (name, field_type) in enumerate(_TRANSACTION_FIELDS, start=1):
        transaction.field.add(
            name=name,
            number=number,
            type=field_type,
            label=_Field.LABEL_OPTIONAL,
        )

    crypto = file_proto.enum_type.add(name="Crypto")
    crypto.value.add(name="DEFAULT", number=0)
    crypto.value.add(name="RESERVED", number=1)

    unverified = file_proto.message_type.add(name="UnverifiedTransaction")
    unverified.field.add(
        name="transaction",
        number=1,
        type=_Field.TYPE_MESSAGE,
        type_name=f".{PACKAGE}.Transaction",
        label=_Field.LABEL_OPTIONAL,
    )
    unverified.field.add(
        name="signature",
        number=2,
        type=_Field.TYPE_BYTES,
        label=_Field.LABEL_OPTIONAL,
    )
    unverified.field.add(
        name="crypto",
        number=3,
        type=_Field.TYPE_ENUM,
        type_name=f".{PACKAGE}.Crypto",
        label=_Field.LABEL_OPTIONAL,
    )

    return file_proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_file_descriptor().SerializeToString())

Transaction = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName(f"{PACKAGE}.Transaction")
)
UnverifiedTransaction = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName(f"{PACKAGE}.UnverifiedTransaction")
)

# Crypto enum values
CRYPTO_DEFAULT = 0
CRYPTO_RESERVED = 1
