import numpy as np

RHS_MAGIC_NUMBER = 0xd69127ac

FIRST_SUPPORTED_MAJOR_VERSION = 1
LAST_TESTED_MAJOR_VERSION = 3

# RHX software 3.0 and later saves amplifier data with the notch filter
# already applied.
NOTCH_PREFILTERED_MAJOR_VERSION = 3

SAMPLES_PER_DATA_BLOCK = 128

# QString length marking a null string
NULL_QSTRING_LENGTH = 0xffffffff

# notch filter mode code -> frequency in Hz (0 means off)
NOTCH_FILTER_MODES = {0: 0, 1: 50, 2: 60}
NOTCH_OFF = 0

DEFAULT_NOTCH_BANDWIDTH = 10

# Signal groups, in the order they appear in every data block

AMPLIFIER = 'amplifier'
DC_AMPLIFIER = 'dc_amplifier'
STIM = 'stim'
BOARD_ADC = 'board_adc'
BOARD_DAC = 'board_dac'
BOARD_DIG_IN = 'board_dig_in'
BOARD_DIG_OUT = 'board_dig_out'

BLOCK_GROUP_ORDER = (AMPLIFIER, DC_AMPLIFIER, STIM, BOARD_ADC, BOARD_DAC,
                     BOARD_DIG_IN, BOARD_DIG_OUT)

DIGITAL_GROUPS = (BOARD_DIG_IN, BOARD_DIG_OUT)

# digital channels are bits of one uint16 word per sample
DIGITAL_WORD_BITS = 16

# signal_type code in a channel record -> group holding its channels
SIGNAL_TYPES = {0: AMPLIFIER,
                3: BOARD_ADC,
                4: BOARD_DAC,
                5: BOARD_DIG_IN,
                6: BOARD_DIG_OUT}

# Datatypes for different channel types

TIMESTAMP_DTYPE = np.dtype('<i4')

AMPLIFIER_DTYPE = np.dtype('<u2')

DC_AMPLIFIER_DTYPE = np.dtype('<u2')

STIM_DTYPE = np.dtype('<u2')

ADC_DTYPE = np.dtype('<u2')
DAC_DTYPE = np.dtype('<u2')

DIG_IN_DTYPE = np.dtype('<u2')
DIG_OUT_DTYPE = np.dtype('<u2')

GROUP_DTYPES = {AMPLIFIER: AMPLIFIER_DTYPE,
                DC_AMPLIFIER: DC_AMPLIFIER_DTYPE,
                STIM: STIM_DTYPE,
                BOARD_ADC: ADC_DTYPE,
                BOARD_DAC: DAC_DTYPE,
                BOARD_DIG_IN: DIG_IN_DTYPE,
                BOARD_DIG_OUT: DIG_OUT_DTYPE}

# Scaling for different channel types, as (units, scale, offset):
# value = scale * (raw - offset)

AMPLIFIER_BIT_MICROVOLTS = 0.195
AMPLIFIER_OFFSET = 32768

DC_AMPLIFIER_BIT_MILLIVOLTS = -19.23
DC_AMPLIFIER_OFFSET = 512

ADC_DAC_BIT_VOLTS = 312.5e-6
ADC_DAC_OFFSET = 32768

# stim_step_size is stored in amps
STIM_UNIT_AMPS = 1.0e-6

GROUP_SCALING = {AMPLIFIER: ('uV', AMPLIFIER_BIT_MICROVOLTS, AMPLIFIER_OFFSET),
                 DC_AMPLIFIER: ('mV', DC_AMPLIFIER_BIT_MILLIVOLTS,
                                DC_AMPLIFIER_OFFSET),
                 STIM: ('uA', None, 0),
                 BOARD_ADC: ('V', ADC_DAC_BIT_VOLTS, ADC_DAC_OFFSET),
                 BOARD_DAC: ('V', ADC_DAC_BIT_VOLTS, ADC_DAC_OFFSET),
                 BOARD_DIG_IN: (None, 1, 0),
                 BOARD_DIG_OUT: (None, 1, 0)}

# Stimulation word bit layout

STIM_COMPLIANCE_LIMIT_BIT = 15
STIM_CHARGE_RECOVERY_BIT = 14
STIM_AMP_SETTLE_BIT = 13
STIM_POLARITY_BIT = 8
STIM_MAGNITUDE_MASK = 0xff
