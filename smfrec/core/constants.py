"""MIDI status bytes, controller numbers, and recording defaults."""

# Channel voice status nibbles (OR with the channel 0-15)
NOTE_OFF = 0x80
NOTE_ON = 0x90
KEY_PRESSURE = 0xA0
CONTROL_CHANGE = 0xB0
PROGRAM_CHANGE = 0xC0
CHANNEL_PRESSURE = 0xD0
PITCH_BEND = 0xE0

# System / file-only status bytes
SYSEX_START = 0xF0
SYSEX_ESCAPE = 0xF7
META = 0xFF

# Status bytes at or above this value break running status
SYSTEM_STATUS_MIN = 0xF0

# Meta event types
META_SET_TEMPO = 0x51
META_TIME_SIGNATURE = 0x58
META_END_OF_TRACK = 0x2F

# Controller numbers used by paired / parameter writes
CTL_DATA_ENTRY_MSB = 0x06
CTL_DATA_ENTRY_LSB = 0x26
CTL_NRPN_LSB = 0x62
CTL_NRPN_MSB = 0x63
CTL_RPN_LSB = 0x64
CTL_RPN_MSB = 0x65
CTL_LSB_OFFSET = 0x20  # 14-bit controllers 0x00-0x1F have their LSB at +0x20

PITCH_BEND_CENTER = 8192

# Time signature meta constants
MIDI_CLOCKS_PER_CLICK = 24
THIRTY_SECONDS_PER_QUARTER = 8

# Parameter ranges
BPM_MIN = 4
BPM_MAX = 6000
SMPTE_FRAME_RATES = (24, 25, 29, 30)
TICKS_MIN = 1
TICKS_MAX = 0x7FFF
SMPTE_TICKS_MAX = 0xFF
TIMESIG_MIN = 1
TIMESIG_MAX = 64

# Defaults
DEFAULT_BPM = 120
DEFAULT_METRICAL_TICKS = 384
DEFAULT_SMPTE_TICKS = 40
DEFAULT_TIME_SIGNATURE = "4:4"

# The single destination port every recorded event must be addressed to
RECORDING_PORT = 0

# Poll slice in seconds; the stop flag is checked at least this often
POLL_INTERVAL = 0.05

# Seconds between checks that the recording port still exists
PORT_CHECK_INTERVAL = 1.0
