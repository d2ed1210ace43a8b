"""
Unit tests for flight plot generation.

Plots are built from a short cancelled flight so no full descent has to
be simulated.
"""

import os
import sys
import tempfile
import unittest
from dataclasses import replace

import numpy as np

# Add scripts directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'scripts'))

from plot_flight import FlightData, extract_flight_data, generate_all_plots

from descent_sim.config import create_test_config
from descent_sim.main import FlightSession
from descent_sim.profiles import MARS, MOON


def _short_report(world, ticks=120):
    session = FlightSession(world, config=create_test_config(), seed=3.0)
    for _ in range(ticks):
        session.tick()
    return session.cancel()


class TestPlotGeneration(unittest.TestCase):
    """Test suite for plot generation functionality."""

    def setUp(self):
        self.report = _short_report(MOON)
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_generate_all_plots_creates_files(self):
        saved = generate_all_plots(self.report, MOON, self.temp_dir)
        self.assertEqual(len(saved), 4)
        for path in saved:
            self.assertTrue(os.path.exists(path), f"Plot file not found: {path}")
            self.assertTrue(path.startswith(self.temp_dir))

    def test_output_directory_created(self):
        new_dir = os.path.join(self.temp_dir, 'new_subdir', 'nested')
        saved = generate_all_plots(self.report, MOON, new_dir)
        self.assertTrue(os.path.isdir(new_dir))
        self.assertGreater(len(saved), 0)

    def test_world_without_terrain(self):
        flat = replace(MARS, terrain=None)
        report = _short_report(flat, ticks=30)
        saved = generate_all_plots(report, flat, self.temp_dir)
        self.assertEqual(len(saved), 4)


class TestDataExtraction(unittest.TestCase):

    def test_extract_flight_data(self):
        report = _short_report(MOON, ticks=50)
        data = extract_flight_data(report)
        self.assertIsInstance(data, FlightData)
        self.assertEqual(len(data.t), 51)  # initial sample plus one per tick
        self.assertEqual(data.altitude.shape, (51,))
        self.assertTrue(np.all(data.in_orbit[:1]))
        self.assertTrue(np.all(np.diff(data.t) > 0))


if __name__ == '__main__':
    unittest.main()
