# SPDX-FileCopyrightText: 2020 Lukas Schrangl <lukas.schrangl@tuwien.ac.at>
#
# SPDX-License-Identifier: BSD-3-Clause

import unittest

import pytest

from smlm import config


class TestUseDefaults(unittest.TestCase):
    def setUp(self):
        self.orig = config.rc.copy()

    def tearDown(self):
        config.rc.clear()
        config.rc.update(self.orig)

    def test_function_decorator(self):
        """config.use_defaults: function decorator"""
        @config.use_defaults
        def f(fit_radius=None, other=None):
            return fit_radius, other

        self.assertEqual(f(), (4, None))
        self.assertEqual(f(None), (4, None))
        self.assertEqual(f(2), (2, None))
        config.rc["fit_radius"] = 6
        self.assertEqual(f(), (6, None))
        self.assertEqual(f(fit_radius=3), (3, None))

    def test_method_decorator(self):
        """config.use_defaults: method decorator"""
        class A:
            @config.use_defaults
            def __init__(self, engine=None, photon_factor=None):
                self.engine = engine
                self.photon_factor = photon_factor

        self.assertEqual(A().engine, "numba")
        self.assertEqual(A("python").engine, "python")
        self.assertAlmostEqual(A().photon_factor, 3.6)
        config.rc["photon_factor"] = 1.
        self.assertEqual(A().photon_factor, 1.)


class TestSetColumns(unittest.TestCase):
    def setUp(self):
        self.columns = config.columns.copy()

    def tearDown(self):
        config.columns = self.columns.copy()

    def test_function_decorator(self):
        """config.set_columns: function decorator"""
        @config.set_columns
        def f(columns={}):
            return columns

        self.assertDictEqual(f(), self.columns)
        self.assertDictEqual(f({}), self.columns)

        cols = self.columns.copy()
        cols["coords"] = ["z"]
        self.assertDictEqual(f({"coords": ["z"]}), cols)

        config.columns["time"] = "t"
        cols = self.columns.copy()
        cols["time"] = "t"
        self.assertDictEqual(f(), cols)

    def test_method_decorator(self):
        """config.set_columns: method decorator"""
        class A:
            @config.set_columns
            def __init__(self, columns={}):
                self.columns = columns

        self.assertDictEqual(A().columns, self.columns)
        cols = self.columns.copy()
        cols["size"] = "sigma"
        self.assertDictEqual(A({"size": "sigma"}).columns, cols)


class TestLoadRc:
    def test_load(self, tmp_path, restore_rc):
        """config.load_rc: update from YAML file"""
        p = tmp_path / "setup.yaml"
        p.write_text("fit_radius: 5\nphoton_factor: 0.5\n")
        res = config.load_rc(p)
        assert res == {"fit_radius": 5, "photon_factor": 0.5}
        assert config.rc["fit_radius"] == 5
        assert config.rc["photon_factor"] == 0.5
        assert config.rc["threshold_factor"] == 1.5

    def test_empty(self, tmp_path, restore_rc):
        """config.load_rc: empty file"""
        p = tmp_path / "setup.yaml"
        p.write_text("")
        assert config.load_rc(p) == {}
        assert config.rc["fit_radius"] == 4

    def test_unknown_key(self, tmp_path, restore_rc):
        """config.load_rc: reject unknown keys"""
        p = tmp_path / "setup.yaml"
        p.write_text("fit_radius: 5\nchannel_names: [a, b]\n")
        with pytest.raises(KeyError):
            config.load_rc(p)
        assert config.rc["fit_radius"] == 4
