"""Pytest fixtures for kicad-sexp tests."""

import io
from pathlib import Path

import pytest

# Small but realistic KiCad PCB, including a comment and fields that the
# test schemas don't declare (generator_version, a segment's uuid).
MINIMAL_PCB = """(kicad_pcb
  (version 20240108)
  (generator "pcbnew")
  (generator_version "8.0")
  (general
    (thickness 1.6)
    (legacy_teardrops no)
  )
  (paper "A4")
  (layers
    (0 "F.Cu" signal)
    (31 "B.Cu" signal)
    (36 "B.SilkS" user "B.Silkscreen")
    (44 "Edge.Cuts" user)
  )
  (setup
    (pad_to_mask_clearance 0)
    (pcbplotparams
      (layerselection 0x00010fc_ffffffff)
      (outputdirectory "")
    )
  )
  (net 0 "")
  (net 1 "GND")
  (net 2 "/VCC")
  # hand-edited below this line
  (footprint "Resistor_SMD:R_0603_1608Metric"
    (layer "F.Cu")
    (uuid "00000000-0000-0000-0000-000000000002")
    (at 100 50 90)
    (property "Reference" "R1" (at 0 -1.43 90) (layer "F.SilkS"))
    (property "Value" "10k" (at 0 1.43 90) (layer "F.Fab"))
    (attr smd)
    (pad "1" smd roundrect (at -0.825 0 90) (size 0.8 0.95) (layers "F.Cu" "F.Paste" "F.Mask") (net 1 "GND"))
    (pad "2" smd roundrect (at 0.825 0 90) (size 0.8 0.95) (layers "F.Cu" "F.Paste" "F.Mask") (net 2 "/VCC"))
  )
  (segment (start 100 50) (end 110 50) (width 0.25) (layer "F.Cu") (net 1) (uuid "00000000-0000-0000-0000-000000000003"))
)
"""

# Minimal KiCad netlist export
MINIMAL_NETLIST = """(export (version "E")
  (design (source "test.kicad_sch") (tool "Eeschema 8.0.0"))
  (components
    (comp (ref "R1") (value "10k") (footprint "Resistor_SMD:R_0603_1608Metric")))
  (nets
    (net (code "1") (name "GND")
      (node (ref "R1") (pin "1")))))
"""


@pytest.fixture
def minimal_pcb(tmp_path: Path) -> Path:
    """Write the minimal PCB to a temporary file."""
    pcb_path = tmp_path / "test.kicad_pcb"
    pcb_path.write_text(MINIMAL_PCB, encoding="utf-8")
    return pcb_path


@pytest.fixture
def minimal_netlist(tmp_path: Path) -> Path:
    """Write the minimal netlist to a temporary file."""
    net_path = tmp_path / "test.net"
    net_path.write_text(MINIMAL_NETLIST, encoding="utf-8")
    return net_path


@pytest.fixture
def sink() -> io.BytesIO:
    """In-memory binary sink for writer tests."""
    return io.BytesIO()


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch) -> Path:
    """Run with no user config and a working directory that is its own project root."""
    monkeypatch.setattr("kicad_sexp.config.USER_CONFIG_PATH", tmp_path / "no-user-config.toml")
    project = tmp_path / "project"
    project.mkdir()
    (project / ".git").mkdir()
    monkeypatch.chdir(project)
    return project
