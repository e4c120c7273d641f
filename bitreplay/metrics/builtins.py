"""
Built-in metric catalog.

Every metric is pure, returns 0 for an empty buffer, uses base-2 logarithms
and rounds real values to 6 decimals. Byte-level metrics zero-pad the last
partial byte.
"""

import math
from collections import Counter
from typing import Callable, Dict, Iterable, List

from ..core.bits import chunks

BUILTIN_METRICS: Dict[str, Callable[[str], float]] = {}

PRECISION = 6


def metric(*names: str):
    """Register fn under each name, guarding empty input and rounding."""
    def decorator(fn):
        def wrapped(bits: str) -> float:
            if not bits:
                return 0
            value = fn(bits)
            if isinstance(value, float):
                return round(value, PRECISION) + 0.0
            return value
        wrapped.__name__ = fn.__name__
        wrapped.__doc__ = fn.__doc__
        for name in names:
            BUILTIN_METRICS[name] = wrapped
        return wrapped
    return decorator


def shannon(counts: Iterable[int]) -> float:
    """Shannon entropy (bits) of a frequency table; 0 for degenerate tables."""
    counts = [c for c in counts if c > 0]
    total = sum(counts)
    if total == 0 or len(counts) < 2:
        return 0.0
    return -sum((c / total) * math.log2(c / total) for c in counts)


def ones_ratio(bits: str) -> float:
    return bits.count("1") / len(bits)


def runs(bits: str) -> List[int]:
    out = []
    current = 1
    for prev, cur in zip(bits, bits[1:]):
        if cur == prev:
            current += 1
        else:
            out.append(current)
            current = 1
    out.append(current)
    return out


def transitions(bits: str) -> int:
    return sum(1 for a, b in zip(bits, bits[1:]) if a != b)


def byte_values(bits: str) -> List[int]:
    return [int(c, 2) for c in chunks(bits, 8, pad=True)]


def lz_phrases(bits: str) -> int:
    """Number of phrases in a simple LZ78-style parse."""
    seen = set()
    phrases = 0
    current = ""
    for b in bits:
        current += b
        if current not in seen:
            seen.add(current)
            phrases += 1
            current = ""
    return phrases + (1 if current else 0)


def _mean(values: List[float]) -> float:
    return sum(values) / len(values)


def _pairs(bits: str, size: int = 2, step: int = 1) -> Counter:
    return Counter(bits[i:i + size] for i in range(0, len(bits) - size + 1, step))


# Basic statistics

@metric("entropy")
def entropy(bits):
    """Shannon entropy of the bit distribution"""
    return shannon(Counter(bits).values())


@metric("balance")
def balance(bits):
    """Fraction of ones"""
    return ones_ratio(bits)


@metric("bit_density")
def bit_density(bits):
    """Fraction of ones"""
    return ones_ratio(bits)


@metric("hamming_weight", "popcount")
def hamming_weight(bits):
    """Number of ones"""
    return bits.count("1")


@metric("transition_count")
def transition_count(bits):
    """Number of adjacent bit changes"""
    return transitions(bits)


@metric("transition_rate", "toggle_rate")
def transition_rate(bits):
    """Transitions per adjacent pair"""
    if len(bits) < 2:
        return 0.0
    return transitions(bits) / (len(bits) - 1)


@metric("run_length_avg", "avg_stable_run")
def run_length_avg(bits):
    """Mean run length"""
    return len(bits) / len(runs(bits))


@metric("runs_count", "runs_test")
def runs_count(bits):
    """Number of runs"""
    return len(runs(bits))


@metric("max_stable_run")
def max_stable_run(bits):
    """Longest run of either bit"""
    return max(runs(bits))


def _longest(bits, bit):
    return max((len(r) for r in bits.split("0" if bit == "1" else "1")), default=0)


@metric("longest_run_ones")
def longest_run_ones(bits):
    return _longest(bits, "1")


@metric("longest_run_zeros")
def longest_run_zeros(bits):
    return _longest(bits, "0")


@metric("variance")
def variance(bits):
    """Variance of the bits as 0/1 samples"""
    p = ones_ratio(bits)
    return p * (1 - p)


@metric("standard_deviation")
def standard_deviation(bits):
    p = ones_ratio(bits)
    return math.sqrt(p * (1 - p))


@metric("skewness")
def skewness(bits):
    p = ones_ratio(bits)
    var = p * (1 - p)
    if var == 0:
        return 0.0
    return (1 - 2 * p) / math.sqrt(var)


@metric("kurtosis")
def kurtosis(bits):
    """Excess kurtosis of the 0/1 samples"""
    p = ones_ratio(bits)
    var = p * (1 - p)
    if var == 0:
        return 0.0
    return (1 - 6 * var) / var


@metric("chi_square")
def chi_square(bits):
    """Chi-square statistic against a fair coin"""
    expected = len(bits) / 2
    ones = bits.count("1")
    zeros = len(bits) - ones
    return ((ones - expected) ** 2 + (zeros - expected) ** 2) / expected


@metric("monobit_test")
def monobit_test(bits):
    """NIST monobit statistic"""
    ones = bits.count("1")
    return abs(ones - (len(bits) - ones)) / math.sqrt(len(bits))


# Correlation

@metric("autocorrelation")
def autocorrelation(bits):
    """Lag-1 autocorrelation of the mean-centred samples"""
    xs = [1.0 if b == "1" else 0.0 for b in bits]
    m = _mean(xs)
    denom = sum((x - m) ** 2 for x in xs)
    if denom == 0 or len(xs) < 2:
        return 0.0
    return sum((a - m) * (b - m) for a, b in zip(xs, xs[1:])) / denom


def _signed_lag(bits, lag):
    if len(bits) <= lag:
        return 0.0
    total = sum(1 if a == b else -1 for a, b in zip(bits, bits[lag:]))
    return total / (len(bits) - lag)


@metric("autocorr_lag1")
def autocorr_lag1(bits):
    return _signed_lag(bits, 1)


@metric("autocorr_lag2")
def autocorr_lag2(bits):
    return _signed_lag(bits, 2)


@metric("serial_correlation")
def serial_correlation(bits):
    """Knuth's serial correlation coefficient (cyclic)"""
    xs = [1 if b == "1" else 0 for b in bits]
    n = len(xs)
    s = sum(xs)
    sq = sum(x * x for x in xs)
    cross = sum(xs[i] * xs[(i + 1) % n] for i in range(n))
    denom = n * sq - s * s
    if denom == 0:
        return 0.0
    return (n * cross - s * s) / denom


# Information theory

@metric("joint_entropy")
def joint_entropy(bits):
    """Entropy of adjacent pairs"""
    return shannon(_pairs(bits).values())


@metric("conditional_entropy")
def conditional_entropy(bits):
    """H(next | previous) over adjacent pairs"""
    if len(bits) < 2:
        return 0.0
    return shannon(_pairs(bits).values()) - shannon(Counter(bits[1:]).values())


@metric("mutual_info")
def mutual_info(bits):
    if len(bits) < 2:
        return 0.0
    return max(0.0, 2 * entropy(bits) - shannon(_pairs(bits).values()))


@metric("min_entropy")
def min_entropy(bits):
    p = ones_ratio(bits)
    return -math.log2(max(p, 1 - p))


@metric("renyi_entropy", "collision_entropy")
def collision_entropy(bits):
    """Renyi entropy of order 2"""
    p = ones_ratio(bits)
    if p in (0.0, 1.0):
        return 0.0
    return -math.log2(p * p + (1 - p) * (1 - p))


@metric("cross_entropy")
def cross_entropy(bits):
    """Cross entropy against the uniform distribution"""
    return 1.0


@metric("kl_divergence")
def kl_divergence(bits):
    """KL divergence from the uniform distribution"""
    return 1.0 - entropy(bits)


@metric("byte_entropy")
def byte_entropy(bits):
    return shannon(Counter(byte_values(bits)).values())


@metric("nibble_entropy")
def nibble_entropy(bits):
    return shannon(Counter(chunks(bits, 4, pad=True)).values())


@metric("block_entropy")
def block_entropy(bits):
    """Entropy of non-overlapping whole 8-bit blocks"""
    return shannon(_pairs(bits, size=8, step=8).values())


def _mean_block_entropy(bits, size):
    blocks = [c for c in chunks(bits, size) if len(c) == size]
    if not blocks:
        return 0.0
    return _mean([shannon(Counter(b).values()) for b in blocks])


@metric("block_entropy_8")
def block_entropy_8(bits):
    """Mean bit entropy of 8-bit blocks"""
    return _mean_block_entropy(bits, 8)


@metric("block_entropy_16")
def block_entropy_16(bits):
    """Mean bit entropy of 16-bit blocks"""
    return _mean_block_entropy(bits, 16)


@metric("block_entropy_overlapping")
def block_entropy_overlapping(bits):
    """Entropy of overlapping 8-bit windows"""
    return shannon(_pairs(bits, size=8).values())


# Complexity

def _compressed_bytes(bits):
    return math.ceil(entropy(bits) * len(bits) / 8)


@metric("compression_ratio")
def compression_ratio(bits):
    """Raw bytes over entropy-estimated compressed bytes"""
    size = _compressed_bytes(bits)
    if size == 0:
        return 1.0
    return math.ceil(len(bits) / 8) / size


@metric("kolmogorov_estimate")
def kolmogorov_estimate(bits):
    """Entropy-estimated compressed size in bits"""
    return _compressed_bytes(bits) * 8


@metric("lempel_ziv")
def lempel_ziv(bits):
    """Normalized LZ phrase count"""
    return lz_phrases(bits) / (len(bits) / math.log2(len(bits) + 1))


@metric("t_complexity")
def t_complexity(bits):
    return lz_phrases(bits) / len(bits)


@metric("bit_complexity")
def bit_complexity(bits):
    return lz_phrases(bits) / math.log2(len(bits) + 1)


@metric("rle_ratio")
def rle_ratio(bits):
    """Raw size over a 9-bit-per-run encoding"""
    return len(bits) / (len(runs(bits)) * 9)


# Structure

@metric("leading_zeros")
def leading_zeros(bits):
    return len(bits) - len(bits.lstrip("0"))


@metric("trailing_zeros")
def trailing_zeros(bits):
    return len(bits) - len(bits.rstrip("0"))


@metric("parity")
def parity(bits):
    return bits.count("1") % 2


@metric("rise_count")
def rise_count(bits):
    return sum(1 for a, b in zip(bits, bits[1:]) if a == "0" and b == "1")


@metric("fall_count")
def fall_count(bits):
    return sum(1 for a, b in zip(bits, bits[1:]) if a == "1" and b == "0")


@metric("rise_fall_ratio")
def rise_fall_ratio(bits):
    rises, falls = rise_count(bits), fall_count(bits)
    if falls == 0:
        return 999 if rises else 1
    return rises / falls


def _unique_ngrams(n):
    def count(bits):
        return len({bits[i:i + n] for i in range(len(bits) - n + 1)})
    count.__doc__ = f"Distinct overlapping {n}-grams"
    return count


metric("unique_ngrams_2")(_unique_ngrams(2))
metric("unique_ngrams_4")(_unique_ngrams(4))
metric("unique_ngrams_8")(_unique_ngrams(8))


@metric("symmetry_index")
def symmetry_index(bits):
    """Fraction of positions mirrored around the centre"""
    half = len(bits) // 2
    if half == 0:
        return 0.0
    return sum(1 for i in range(half) if bits[i] == bits[-1 - i]) / half


@metric("byte_alignment")
def byte_alignment(bits):
    return 1 if len(bits) % 8 == 0 else 0


@metric("word_alignment")
def word_alignment(bits):
    return 1 if len(bits) % 32 == 0 else 0


@metric("periodicity")
def periodicity(bits):
    """Smallest repeating period, or the length when none exists"""
    for period in range(1, len(bits) // 2 + 1):
        if all(bits[i] == bits[i % period] for i in range(period, len(bits))):
            return period
    return len(bits)


@metric("hamming_distance_self")
def hamming_distance_self(bits):
    """Hamming distance between the two halves"""
    half = len(bits) // 2
    return sum(1 for i in range(half) if bits[i] != bits[i + half])


@metric("bit_reversal_distance")
def bit_reversal_distance(bits):
    return sum(1 for a, b in zip(bits, reversed(bits)) if a != b)


# Byte statistics

@metric("std_dev")
def std_dev(bits):
    """Standard deviation of byte values"""
    values = byte_values(bits)
    m = _mean(values)
    return math.sqrt(_mean([(v - m) ** 2 for v in values]))


@metric("median")
def median(bits):
    values = sorted(byte_values(bits))
    mid = len(values) // 2
    if len(values) % 2:
        return values[mid]
    return (values[mid - 1] + values[mid]) / 2


@metric("mode")
def mode(bits):
    """Most frequent byte value (first seen wins ties)"""
    counts = Counter(byte_values(bits))
    return max(counts, key=lambda v: (counts[v], -list(counts).index(v)))


@metric("range")
def value_range(bits):
    values = byte_values(bits)
    return max(values) - min(values)


@metric("iqr")
def iqr(bits):
    values = sorted(byte_values(bits))
    if len(values) < 4:
        return 0
    return values[int(len(values) * 0.75)] - values[int(len(values) * 0.25)]


@metric("mad")
def mad(bits):
    """Mean absolute deviation of byte values"""
    values = byte_values(bits)
    m = _mean(values)
    return _mean([abs(v - m) for v in values])


@metric("cv")
def cv(bits):
    """Coefficient of variation of byte values"""
    values = byte_values(bits)
    m = _mean(values)
    if m == 0:
        return 0.0
    return math.sqrt(_mean([(v - m) ** 2 for v in values])) / m


# Randomness tests

@metric("poker_test")
def poker_test(bits):
    """Poker statistic over non-overlapping nibbles"""
    m = len(bits) // 4
    if m == 0:
        return 0.0
    counts = _pairs(bits, size=4, step=4)
    return (16 / m) * sum(c * c for c in counts.values()) - m


@metric("serial_test")
def serial_test(bits):
    n = len(bits) - 1
    if n <= 0:
        return 0.0
    counts = _pairs(bits)
    return (4 / n) * sum(c * c for c in counts.values()) - 2 * n


# Frequency-domain approximations

def _centroid(values):
    total = sum(values)
    if total == 0:
        return None
    return sum(i * v for i, v in enumerate(values)) / total


@metric("spectral_centroid")
def spectral_centroid(bits):
    c = _centroid(byte_values(bits))
    return 0.0 if c is None else c


@metric("bandwidth")
def bandwidth(bits):
    values = byte_values(bits)
    c = _centroid(values)
    if c is None:
        return 0.0
    return math.sqrt(sum(v * (i - c) ** 2 for i, v in enumerate(values)) / sum(values))


@metric("dominant_freq")
def dominant_freq(bits):
    """Most common run length"""
    counts = Counter(runs(bits))
    return max(counts, key=lambda length: (counts[length], -length))
