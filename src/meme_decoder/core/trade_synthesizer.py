"""
Turns decoded events and correlated transfers into canonical trades.
"""

from __future__ import annotations

from collections.abc import Sequence

from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from meme_decoder.core.pubkeys import SOL_MINT, QUOTE_MINTS, SystemAddresses
from meme_decoder.core.transaction_view import TransactionView
from meme_decoder.errors import DecodeError, MissingTransferError
from meme_decoder.interfaces.models import (
    DexInfo,
    EventType,
    FeeInfo,
    MemeEvent,
    TokenInfo,
    TradeInfo,
    TradeType,
    TransferRecord,
)
from meme_decoder.utils.logger import get_logger
from meme_decoder.utils.token_math import convert_to_ui_amount, sanitize_token_amount

logger = get_logger(__name__)

_TRADE_EVENTS = (EventType.BUY, EventType.SELL, EventType.SWAP)


def get_trade_type(input_mint: str, output_mint: str) -> TradeType:
    """Paying SOL (or another quote token) is a buy, receiving it is a sell."""
    if input_mint == SOL_MINT:
        return TradeType.BUY
    if output_mint == SOL_MINT:
        return TradeType.SELL
    if input_mint in QUOTE_MINTS:
        return TradeType.BUY
    return TradeType.SELL


def get_associated_token_accounts(owner: str, mint: str) -> set[str]:
    """ATAs of ``owner`` for ``mint`` under both Token and Token-2022."""
    owner_key = Pubkey.from_string(owner)
    mint_key = Pubkey.from_string(mint)
    return {
        str(get_associated_token_address(owner_key, mint_key, program))
        for program in (SystemAddresses.TOKEN_PROGRAM, SystemAddresses.TOKEN_2022_PROGRAM)
    }


def get_account_trade_type(
    signer: str,
    base_mint: str,
    input_token_account: str,
    output_token_account: str,
    view: TransactionView | None = None,
) -> TradeType:
    """Direction of a swap relative to ``base_mint``.

    Paying from the signer's base-mint account is a SELL, receiving into it
    a BUY. When the accounts are not the signer's ATAs, the mint recorded for
    them in the token balances decides.
    """
    atas = get_associated_token_accounts(signer, base_mint)
    if input_token_account in atas:
        return TradeType.SELL
    if output_token_account in atas:
        return TradeType.BUY
    if view is not None:
        token_map = view.spl_token_map
        input_row = token_map.get(input_token_account)
        output_row = token_map.get(output_token_account)
        if input_row is not None and input_row.mint == base_mint:
            return TradeType.SELL
        if output_row is not None and output_row.mint == base_mint:
            return TradeType.BUY
    return TradeType.SWAP


def transfer_to_token_info(transfer: TransferRecord, amount_raw: int | None = None) -> TokenInfo:
    return TokenInfo.from_raw(
        transfer.mint,
        transfer.raw_amount if amount_raw is None else amount_raw,
        transfer.decimals,
        authority=transfer.authority,
        source=transfer.source,
        destination=transfer.destination,
        destination_owner=transfer.destination_owner,
    )


def transfer_to_fee_info(transfer: TransferRecord, dex: str | None = None) -> FeeInfo:
    return FeeInfo(
        mint=transfer.mint,
        amount_raw=transfer.raw_amount,
        decimals=transfer.decimals,
        ui_amount=transfer.ui_amount,
        recipient=transfer.destination_owner or transfer.destination,
        dex=dex,
    )


def process_swap_data(
    view: TransactionView,
    transfers: Sequence[TransferRecord],
    dex_info: DexInfo,
    skip_native: bool = False,
) -> TradeInfo | None:
    """Build a swap from the transfers one instruction caused.

    Input is the first distinct mint moved and output the last one, swapped
    when the output leg is paid by the signer. None when fewer than two
    distinct mints moved.
    """
    if not transfers:
        raise MissingTransferError("No swap data provided")

    unique: list[TransferRecord] = []
    seen_mints: set[str] = set()
    for transfer in transfers:
        if skip_native and transfer.is_native:
            continue
        if transfer.mint not in seen_mints:
            seen_mints.add(transfer.mint)
            unique.append(transfer)
    if len(unique) < 2:
        return None

    signer = view.signer
    input_transfer, output_transfer = unique[0], unique[-1]
    if signer and signer in (output_transfer.source, output_transfer.authority, output_transfer.source_owner):
        input_transfer, output_transfer = output_transfer, input_transfer

    input_amount = output_amount = 0
    fee_transfer: TransferRecord | None = None
    seen_amounts: set[tuple[int, str]] = set()
    for transfer in transfers:
        if skip_native and transfer.is_native:
            continue
        if transfer.is_fee:
            fee_transfer = transfer
            continue
        key = (transfer.raw_amount, transfer.mint)
        if key in seen_amounts:
            continue
        seen_amounts.add(key)
        if transfer.mint == input_transfer.mint:
            input_amount += transfer.raw_amount
        if transfer.mint == output_transfer.mint:
            output_amount += transfer.raw_amount

    trade = TradeInfo(
        type=get_trade_type(input_transfer.mint, output_transfer.mint),
        input_token=transfer_to_token_info(input_transfer, input_amount),
        output_token=transfer_to_token_info(output_transfer, output_amount),
        user=signer,
        program_id=dex_info.program_id or "",
        amm=dex_info.amm or "",
        route=dex_info.route or "",
        fee=transfer_to_fee_info(fee_transfer, dex_info.amm) if fee_transfer else None,
        idx=transfers[0].idx,
    )
    if fee_transfer is not None:
        trade.fees.append(trade.fee)
    return trade


def process_meme_transfer_data(
    view: TransactionView,
    transfers: Sequence[TransferRecord],
    event: MemeEvent,
    base_mint: str,
    skip_native: bool,
    start_index: int,
    dex_info: DexInfo,
) -> MemeEvent:
    """Replace the event's amounts with what the correlated transfers moved.

    The event is returned unchanged when fewer than two transfers exist.
    """
    if len(transfers) < 2:
        return event
    trade = process_swap_data(view, list(transfers)[start_index:], dex_info, skip_native)
    if trade is None:
        return event

    if event.type is EventType.BUY and trade.output_token.mint != base_mint:
        raise DecodeError(f"Buy output {trade.output_token.mint} is not base mint {base_mint}")
    if event.type is EventType.SELL and trade.input_token.mint != base_mint:
        raise DecodeError(f"Sell input {trade.input_token.mint} is not base mint {base_mint}")

    event.input_token = trade.input_token
    event.output_token = trade.output_token
    if trade.fee is not None:
        event.fee = trade.fee.amount_raw
    return event


def resolve_token(view: TransactionView, token: TokenInfo) -> TokenInfo:
    """Fill decimals and UI amount from the mint-decimals snapshot when missing."""
    amount_raw = sanitize_token_amount(token.amount_raw, label=f"{token.mint} amount")
    if token.is_resolved and amount_raw == token.amount_raw:
        return token
    decimals = token.decimals if token.decimals is not None else view.get_token_decimals(token.mint)
    resolved = TokenInfo.from_raw(token.mint, amount_raw, decimals)
    resolved.authority = token.authority
    resolved.source = token.source
    resolved.destination = token.destination
    resolved.destination_owner = token.destination_owner
    resolved.balance_change = token.balance_change
    return resolved


def aggregate_fees(event: MemeEvent, fee_token: TokenInfo, dex: str) -> tuple[FeeInfo | None, list[FeeInfo]]:
    """Sum the event's fee components into one fee on ``fee_token``'s mint.

    Zero components are dropped from the breakdown. An event with only a
    total ``fee`` yields that total without breakdown.
    """
    decimals = fee_token.decimals or 0
    components = (
        ("protocol", event.protocol_fee, event.fee_recipient),
        ("coinCreator", event.creator_fee, event.creator),
        ("platform", event.platform_fee, event.platform_config),
        ("share", event.share_fee, None),
    )
    fees = [
        FeeInfo(
            mint=fee_token.mint,
            amount_raw=amount,
            decimals=decimals,
            ui_amount=convert_to_ui_amount(amount, decimals),
            type=fee_type,
            recipient=recipient,
            dex=dex,
        )
        for fee_type, amount, recipient in components
        if amount
    ]
    if fees:
        total = sum(f.amount_raw for f in fees)
    elif event.fee:
        total = event.fee
    else:
        return None, []

    fee = FeeInfo(
        mint=fee_token.mint,
        amount_raw=total,
        decimals=decimals,
        ui_amount=convert_to_ui_amount(total, decimals),
        recipient=event.fee_recipient,
        dex=dex,
    )
    return fee, fees


def build_trade_from_event(
    view: TransactionView,
    event: MemeEvent,
    dex_info: DexInfo,
    program_id: str,
    amm: str,
) -> TradeInfo | None:
    """Canonical trade for a BUY/SELL/SWAP event; None for other event types."""
    if event.type not in _TRADE_EVENTS:
        return None
    if event.input_token is None or event.output_token is None:
        raise DecodeError(
            f"{event.type.value} event without input/output token", event.protocol, event.idx
        )

    input_token = resolve_token(view, event.input_token)
    output_token = resolve_token(view, event.output_token)
    if input_token.mint == output_token.mint:
        raise DecodeError(
            f"trade input and output share mint {input_token.mint}", event.protocol, event.idx
        )

    trade_type = TradeType(event.type.value)
    fee_token = output_token if trade_type is TradeType.SELL else input_token
    amm = dex_info.amm or amm
    fee, fees = aggregate_fees(event, fee_token, amm)

    return TradeInfo(
        type=trade_type,
        input_token=input_token,
        output_token=output_token,
        user=event.user,
        program_id=dex_info.program_id or program_id,
        amm=amm,
        route=dex_info.route or "",
        pools=[p for p in (event.pool or event.bonding_curve,) if p],
        fee=fee,
        fees=fees,
        slot=event.slot,
        timestamp=event.timestamp,
        signature=event.signature,
        idx=event.idx,
    )
