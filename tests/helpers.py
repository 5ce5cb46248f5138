"""
Helpers for reading emitted G-code in tests.
"""


def gcode_lines(output):
    return output.strip().split("\n")


def motion_lines(output):
    """Lines that carry a motion word, with modal G-words reinstated."""
    lines = []
    mode = None
    for line in gcode_lines(output):
        words = line.split()
        if not words or line.startswith("(") or words[0] in ("G53", "G4", "M03", "M05", "M02", "G21", "G90"):
            continue
        if words[0] in ("G0", "G1", "G2", "G3"):
            mode = words[0]
            words = words[1:]
        lines.append(" ".join([mode] + words))
    return lines
