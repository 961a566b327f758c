"""Raw signed transaction helpers."""

from eth_account._utils.legacy_transactions import Transaction
from eth_account.datastructures import SignedTransaction
from hexbytes import HexBytes

from eth_create2.compat import WEB3_PY_V7

if WEB3_PY_V7:
    from eth_account.typed_transactions import TypedTransaction
else:
    from eth_account._utils.typed_transactions import TypedTransaction


class DecodeFailure(Exception):
    """Bytes are not a signed transaction we understand."""


def decode_signed_transaction(raw_transaction: bytes | str) -> dict:
    """Turn raw signed transaction bytes back to a dict.

    Handles legacy transactions, like the pre-signed factory bootstrap,
    and EIP-2718 typed transactions.

    :param raw_transaction:
        Bytes or ``0x`` hex

    :raise DecodeFailure:
        Not a transaction we can decode

    :return:
        Transaction fields: ``nonce``, ``gas``, ``to``, ``value``, ``data``, ``v``, ``r``, ``s``
        and either ``gasPrice`` or the EIP-1559 fee fields.
    """
    try:
        raw_transaction = HexBytes(raw_transaction)

        # Legacy transactions are bare RLP lists, typed ones start with a type byte
        if raw_transaction and raw_transaction[0] >= 0xC0:
            return Transaction.from_bytes(raw_transaction).as_dict()

        typed = TypedTransaction.from_bytes(raw_transaction)
        if WEB3_PY_V7:
            return typed.transaction.as_dict()
        return typed.transaction.dictionary
    except Exception as e:
        raise DecodeFailure(f"Could not decode transaction: {raw_transaction!r}") from e


def get_tx_broadcast_data(signed_tx: SignedTransaction) -> HexBytes:
    """Raw bytes of a signed transaction.

    eth_account 0.13 renamed ``rawTransaction`` to ``raw_transaction``.
    """
    raw = getattr(signed_tx, "raw_transaction", None)
    if raw is None:
        raw = getattr(signed_tx, "rawTransaction", None)
    if raw is None:
        raise AttributeError(f"Not a signed transaction: {type(signed_tx)}")
    return HexBytes(raw)
