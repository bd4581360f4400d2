"""Bit unpacking for packed RHS words.

Stimulation words (one 16-bit word per amplifier channel per sample):

    bit 15      compliance limit reached
    bit 14      charge recovery active
    bit 13      amplifier settle active
    bit 8       stimulation polarity, 1 = negative
    bits 0-7    stimulation magnitude, in steps of the header's step size

Digital words (one 16-bit word per sample for all digital inputs, and one
for all digital outputs): channel with native order `n` is bit `n`.
"""
from collections import namedtuple

import numpy as np

from . import constants as const

StimWords = namedtuple('StimWords', ['steps', 'compliance_limit',
                                     'charge_recovery', 'amp_settle'])


def bit_is_set(words, bit):
    """Returns a boolean array, True where `bit` is set in `words`."""
    return np.bitwise_and(words, 1 << bit) != 0


def unpack_stim_words(words):
    """Splits raw stimulation words into signed step counts and flags.

    Args:
        words (numpy array of uint16): raw stim words, any shape

    Returns:
        StimWords: `steps` is int16 (magnitude times polarity), the flags
            are boolean arrays of the same shape as `words`
    """
    words = np.asarray(words, dtype=np.uint16)
    magnitude = np.bitwise_and(words, const.STIM_MAGNITUDE_MASK).astype(np.int16)
    polarity = 1 - 2 * bit_is_set(words, const.STIM_POLARITY_BIT).astype(np.int16)
    return StimWords(
        steps=magnitude * polarity,
        compliance_limit=bit_is_set(words, const.STIM_COMPLIANCE_LIMIT_BIT),
        charge_recovery=bit_is_set(words, const.STIM_CHARGE_RECOVERY_BIT),
        amp_settle=bit_is_set(words, const.STIM_AMP_SETTLE_BIT))


def unpack_digital_words(words, native_orders):
    """Expands packed digital words into one row per channel.

    Args:
        words (1-d numpy array of uint16): one word per sample
        native_orders (sequence of int): bit position of each channel

    Returns:
        numpy array of uint8, shape (len(native_orders), len(words)),
            holding 0 or 1
    """
    words = np.asarray(words, dtype=np.uint16)
    out = np.zeros((len(native_orders), len(words)), dtype=np.uint8)
    for i, bit in enumerate(native_orders):
        out[i] = bit_is_set(words, bit)
    return out
