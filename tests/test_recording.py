import pytest
import numpy as np
import intanrhs
from intanrhs.config import read_config, make_options, DEFAULTS
from intanrhs.errors import InvalidInput, BadMagic, FormatError
from intanrhs.scaling import notch_filter

from synthetic import amplifier_file, header_bytes, write_rhs

eq = np.allclose


def test_load_file(tmpdir):
    path = amplifier_file(tmpdir, 'rec_200101_120000.rhs', 10)
    rhs = intanrhs.load(path)
    assert rhs.source_files is None
    assert rhs.data.amplifier_data.shape == (1, 10)
    assert rhs.header.sample_rate == 30000.0


def test_load_path_object(tmpdir):
    amplifier_file(tmpdir, 'rec_200101_120000.rhs', 10)
    rhs = intanrhs.load(tmpdir.join('rec_200101_120000.rhs'))
    assert rhs.num_samples == 10


def test_load_directory(tmpdir):
    amplifier_file(tmpdir, 'rec_200101_120000.rhs', 10)
    amplifier_file(tmpdir, 'rec_200101_120500.rhs', 5)
    rhs = intanrhs.load(tmpdir.strpath)
    assert len(rhs.source_files) == 2
    assert rhs.num_samples == 15


def test_load_invalid_path(tmpdir):
    with pytest.raises(InvalidInput):
        intanrhs.load(tmpdir.join('missing.rhs').strpath)


def test_load_header_only(tmpdir):
    path = write_rhs(tmpdir, 'empty.rhs', header_bytes())
    rhs = intanrhs.load(path)
    assert not rhs.data_present
    assert rhs.num_samples == 0
    assert len(rhs.header.amplifier_channels) == 1


def test_load_not_an_rhs_file(tmpdir):
    path = tmpdir.join('data.rhs')
    path.write_binary(b'RIFF' + bytes(40))
    with pytest.raises(BadMagic):
        intanrhs.load(path.strpath)
    with pytest.raises(FormatError):
        intanrhs.load(path.strpath)


def test_load_options_disable_notch(tmpdir):
    path = amplifier_file(tmpdir, 'rec.rhs', 10, version=(1, 0),
                          notch_mode=1)
    filtered = intanrhs.load(path).data.amplifier_data
    raw = intanrhs.load(path, apply_notch=False).data.amplifier_data
    assert eq(raw[0], 0.195 * np.arange(10))
    assert eq(filtered[0], notch_filter(raw[0], 30000.0, 50, 10))
    narrow = intanrhs.load(path, notch_bandwidth=2).data.amplifier_data
    assert eq(narrow[0], notch_filter(raw[0], 30000.0, 50, 2))


def test_load_config_file(tmpdir):
    config = tmpdir.join('intanrhs.yaml')
    config.write('notch_bandwidth: 5\nmax_workers: 2\ntimezone: UTC\n')
    amplifier_file(tmpdir, 'rec_200101_120000.rhs', 10)
    rhs = intanrhs.load(tmpdir.join('rec_200101_120000.rhs').strpath,
                        config=config.strpath)
    assert rhs.start_time.utcoffset().total_seconds() == 0


def test_read_config(tmpdir):
    config = tmpdir.join('config.yaml')
    config.write('apply_notch: false\nextension: .RHS\n')
    assert read_config(config.strpath) == {'apply_notch': False,
                                           'extension': '.RHS'}
    empty = tmpdir.join('empty.yaml')
    empty.write('')
    assert read_config(empty.strpath) == {}
    listing = tmpdir.join('list.yaml')
    listing.write('- 1\n- 2\n')
    with pytest.raises(ValueError):
        read_config(listing.strpath)
    with pytest.raises(FileNotFoundError):
        read_config(tmpdir.join('missing.yaml').strpath)


def test_make_options():
    opts = make_options()
    assert opts._asdict() == DEFAULTS
    opts = make_options({'max_workers': 8}, max_workers=2, timezone='UTC')
    assert opts.max_workers == 2
    assert opts.timezone == 'UTC'
    with pytest.raises(TypeError):
        make_options(notch_frequency=50)
    with pytest.raises(TypeError):
        intanrhs.load('.', colour='blue')
    with pytest.raises(ValueError):
        make_options(max_workers=0)
