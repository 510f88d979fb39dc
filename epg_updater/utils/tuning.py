"""
Tuning key normalisation

Grabbers report a channel's identity in the terms of its broadcast standard.
Each standard family has one function turning that identity into the
(network, transport, service) key stored in ``tuning_details``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from epg_updater.schemas import AtscChannelIdentity, ChannelIdentity, DvbChannelIdentity


@dataclass(frozen=True, slots=True)
class TuningKey:
    network_id: int
    transport_id: int
    service_id: int

    def __str__(self) -> str:
        return (
            f"networkid:0x{self.network_id:X} "
            f"transportid:0x{self.transport_id:X} "
            f"serviceid:0x{self.service_id:X}"
        )


def _dvb_tuning_key(identity: DvbChannelIdentity) -> TuningKey:
    return TuningKey(
        network_id=identity.network_id,
        transport_id=identity.transport_id,
        service_id=identity.service_id,
    )


def _atsc_tuning_key(identity: AtscChannelIdentity) -> TuningKey:
    # ATSC/SCTE carry no original network id
    return TuningKey(
        network_id=0,
        transport_id=identity.transport_id,
        service_id=identity.program_number,
    )


_KEY_BUILDERS: dict[str, Callable[..., TuningKey]] = {
    "dvb": _dvb_tuning_key,
    "atsc": _atsc_tuning_key,
}


def tuning_key_for(identity: ChannelIdentity) -> TuningKey:
    """Build the normalised tuning key for any supported channel identity."""
    try:
        builder = _KEY_BUILDERS[identity.family]
    except KeyError as exc:
        raise ValueError(f"Unsupported broadcast standard: {identity.standard}") from exc
    return builder(identity)
