"""
Logic gates.

Mask-taking gates cycle a short mask across the buffer. Their default masks
are identity-preserving where an identity exists (AND: ones, OR/XOR: zeros).
"""

from ...core.bits import invert, to_int
from ..registry import ones, zeros
from .base import definer, mask_int, numeric

op = definer("logic")


def _gate(fn):
    def apply(bits, params):
        width = len(bits)
        if not width:
            return ""
        return numeric(fn(to_int(bits), mask_int(params["mask"], width)), width)
    apply.__doc__ = fn.__doc__
    return apply


@_gate
def and_(a, m):
    """Bitwise AND with mask"""
    return a & m


@_gate
def or_(a, m):
    """Bitwise OR with mask"""
    return a | m


@_gate
def xor(a, m):
    """Bitwise XOR with mask"""
    return a ^ m


@_gate
def nand(a, m):
    """NOT (bits AND mask)"""
    return ~(a & m)


@_gate
def nor(a, m):
    """NOT (bits OR mask)"""
    return ~(a | m)


@_gate
def xnor(a, m):
    """NOT (bits XOR mask)"""
    return ~(a ^ m)


@_gate
def imply(a, m):
    """Material implication bits -> mask"""
    return ~a | m


@_gate
def nimply(a, m):
    """bits AND NOT mask"""
    return a & ~m


@_gate
def converse(a, m):
    """Converse implication mask -> bits"""
    return a | ~m


def not_(bits, params):
    """Invert every bit"""
    return invert(bits)


def buffer(bits, params):
    """Identity gate"""
    return bits


def _select(bits, params):
    """Keep bits where mask is 1, take value where mask is 0"""
    width = len(bits)
    if not width:
        return ""
    selector = mask_int(params["mask"], width)
    other = mask_int(params.get("value") or zeros(width), width)
    return numeric((to_int(bits) & selector) | (other & ~selector), width)


def maj(bits, params):
    """Bitwise majority of bits, mask and value"""
    width = len(bits)
    if not width:
        return ""
    a = to_int(bits)
    x = mask_int(params.get("mask") or bits, width)
    y = mask_int(params.get("value") or bits, width)
    return numeric((a & x) | (a & y) | (x & y), width)


def _parity(want_odd):
    def apply(bits, params):
        out = []
        for i in range(0, len(bits), 8):
            group = bits[i:i + 7]
            odd_ones = group.count("1") % 2 == 1
            out.append(group + ("1" if odd_ones != want_odd else "0"))
        return "".join(out)[:len(bits)]
    return apply


odd = _parity(want_odd=True)
odd.__doc__ = "Odd parity bit after every 7 data bits"
even = _parity(want_odd=False)
even.__doc__ = "Even parity bit after every 7 data bits"

_MASK = ("mask",)

DEFINITIONS = [
    op("NOT", not_, 1),
    op("AND", and_, 1, _MASK, requires_mask=True, default_mask=ones),
    op("OR", or_, 1, _MASK, requires_mask=True, default_mask=zeros),
    op("XOR", xor, 1, _MASK, requires_mask=True, default_mask=zeros),
    op("NAND", nand, 2, _MASK, requires_mask=True, default_mask=zeros),
    op("NOR", nor, 2, _MASK, requires_mask=True, default_mask=zeros),
    op("XNOR", xnor, 2, _MASK, requires_mask=True, default_mask=zeros),
    op("IMPLY", imply, 2, _MASK, requires_mask=True, default_mask=zeros),
    op("NIMPLY", nimply, 2, _MASK, requires_mask=True, default_mask=zeros),
    op("CONVERSE", converse, 2, _MASK, requires_mask=True, default_mask=zeros),
    op("MUX", _select, 3, ("mask", "value"), requires_mask=True, default_mask=ones),
    op("BLEND", _select, 1, ("mask", "value"), requires_mask=True, default_mask=ones),
    op("MAJ", maj, 3, ("mask", "value"), requires_mask=True, default_mask=zeros),
    op("ODD", odd, 2),
    op("EVEN", even, 2),
    op("BUFFER", buffer, 0),
]
