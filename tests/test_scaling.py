import pytest
import numpy as np
from scipy.signal import freqz
from intanrhs import constants as const
from intanrhs.cursor import ByteCursor
from intanrhs.header import read_header
from intanrhs.datablocks import read_data_blocks
from intanrhs.scaling import (scale_data, notch_filter, notch_coefficients,
                              should_apply_notch, scale_affine)
from intanrhs.rhsfile import read_file

from synthetic import header_bytes, data_bytes, write_rhs

eq = np.allclose
RATE = 30000.0


def decode(header, data, **kwargs):
    cursor = ByteCursor(header + data)
    h = read_header(cursor)
    return h, scale_data(h, read_data_blocks(cursor, h), **kwargs)


def test_amplifier_only_file(tmpdir):
    codes = 32768 + 100 * np.arange(10)
    path = write_rhs(tmpdir, 'ramp.rhs', header_bytes(sample_rate=RATE),
                     data_bytes(np.arange(10), amplifier=codes[None, :],
                                stim=np.zeros((1, 10))))
    rhs = read_file(path)
    data = rhs.data
    assert data.amplifier_data.shape == (1, 10)
    assert eq(data.amplifier_data[0],
              100 * const.AMPLIFIER_BIT_MICROVOLTS * np.arange(10))
    assert eq(data.timestamps, np.arange(10) / RATE)
    assert data.board_adc_data is None
    assert data.dc_amplifier_data is None
    assert eq(data.stim_data, 0)
    assert rhs.num_samples == 10
    assert rhs.duration == pytest.approx(10 / RATE)


def test_amplifier_scaling_is_monotonic():
    raw = np.array([0, 1, 32767, 32768, 32769, 65535], dtype=np.uint16)
    scaled = scale_affine(raw, const.AMPLIFIER_BIT_MICROVOLTS,
                          const.AMPLIFIER_OFFSET)
    assert np.all(np.diff(scaled) > 0)
    assert scaled[3] == 0
    assert scaled[0] == pytest.approx(-32768 * 0.195)


def test_other_units():
    n = 4
    header = header_bytes(amplifier=['A-000'], dc_saved=True,
                          adc=['ANALOG-IN-1'], dac=['ANALOG-OUT-1'],
                          dig_in=['DIN-00'], stim_step_size=2e-6)
    stim = np.array([[0, 5, 0x0105, 0x8000 | 3]])
    data = data_bytes(np.arange(n), amplifier=np.full((1, n), 32768),
                      dc_amplifier=[[512, 513, 511, 0]], stim=stim,
                      adc=[[32768, 32769, 0, 65535]],
                      dac=[[32768] * n], dig_in=[0, 1, 1, 0])
    _, scaled = decode(header, data)
    assert eq(scaled.dc_amplifier_data, [[0, -19.23, 19.23, 512 * 19.23]])
    assert eq(scaled.stim_data, [[0, 10, -10, 6]])
    assert scaled.compliance_limit_data.tolist() == [[False] * 3 + [True]]
    assert eq(scaled.board_adc_data,
              [[0, 312.5e-6, -32768 * 312.5e-6, 32767 * 312.5e-6]])
    assert eq(scaled.board_dac_data, 0)
    assert scaled.board_dig_in_data.dtype == bool
    assert scaled.board_dig_in_data.tolist() == [[False, True, True, False]]
    assert scaled.board_dig_out_data is None


def test_notch_gate():
    old = read_header(ByteCursor(header_bytes(version=(1, 0), notch_mode=2)))
    new = read_header(ByteCursor(header_bytes(version=(3, 0), notch_mode=2)))
    off = read_header(ByteCursor(header_bytes(version=(1, 0), notch_mode=0)))
    assert should_apply_notch(old)
    assert not should_apply_notch(new)
    assert not should_apply_notch(off)


def sine_file(version, num_samples=6000):
    t = np.arange(num_samples)
    wave = 32768 + np.round(1000 * np.sin(2 * np.pi * 60 * t / RATE))
    header = header_bytes(version=version, notch_mode=2, sample_rate=RATE)
    data = data_bytes(t, amplifier=wave[None, :].astype(int),
                      stim=np.zeros((1, num_samples)))
    return header, data


def test_notch_applied_to_old_files():
    header, data = sine_file((1, 0))
    _, scaled = decode(header, data)
    _, unfiltered = decode(header, data, apply_notch=False)
    tail = slice(-300, None)
    assert (np.abs(scaled.amplifier_data[0, tail]).max() <
            0.1 * np.abs(unfiltered.amplifier_data[0, tail]).max())


def test_notch_not_applied_to_new_files():
    header, data = sine_file((3, 0))
    _, scaled = decode(header, data)
    _, unfiltered = decode(header, data, apply_notch=False)
    assert np.array_equal(scaled.amplifier_data, unfiltered.amplifier_data)


def test_notch_filter_first_samples_pass_through():
    signal = np.array([3.0, -2.0, 5.0, 1.0, 0.0])
    out = notch_filter(signal, RATE, 60)
    assert out[0] == 3.0
    assert out[1] == -2.0
    assert out.shape == signal.shape
    assert eq(notch_filter(signal[:2], RATE, 60), signal[:2])


def test_notch_filter_matches_recurrence():
    rng = np.random.RandomState(0)
    signal = rng.randn(50)
    f_sample, f_notch, bandwidth = 20000.0, 50.0, 10.0
    t_step = 1 / f_sample
    d = np.exp(-2 * np.pi * (bandwidth / 2) * t_step)
    b = (1 + d * d) * np.cos(2 * np.pi * f_notch * t_step)
    a0 = 1.0
    a1 = -b
    a2 = d * d
    a = (1 + d * d) / 2
    b0 = 1.0
    b1 = -2 * np.cos(2 * np.pi * f_notch * t_step)
    b2 = 1.0
    expected = signal.copy()
    for i in range(2, len(signal)):
        expected[i] = (a * b2 * signal[i - 2] + a * b1 * signal[i - 1] +
                       a * b0 * signal[i] - a2 * expected[i - 2] -
                       a1 * expected[i - 1]) / a0
    assert eq(notch_filter(signal, f_sample, f_notch, bandwidth), expected)


def test_notch_response():
    b, a = notch_coefficients(RATE, 60, 10)
    _, h = freqz(b, a, worN=[60.0, 1000.0], fs=RATE)
    assert abs(h[0]) < 1e-3
    assert abs(h[1]) == pytest.approx(1, abs=1e-3)
