"""Tests for personality archetypes and the static definition registries.

Verifies that:
1. Persisted personalities parse in every shape the world stores them
2. Every archetype and structure type has a registered definition
3. Definitions serialize through TypeAdapter (enums become strings)
"""

import sys
import os

import pytest
from pydantic import TypeAdapter

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from horde.core.personality import PERSONALITY_DEFS, Personality, PersonalityDef
from horde.core.structures import BUILDING_DEFS, STRUCTURE_DEFS, StructureDef


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

class TestParse:
    @pytest.mark.parametrize("raw", ["FERAL", "feral", " Feral ", {"id": "FERAL"}, {"name": "feral"},
                                     Personality.FERAL])
    def test_accepted_shapes(self, raw):
        assert Personality.parse(raw) is Personality.FERAL

    @pytest.mark.parametrize("raw", [None, "", "berserk", 7, {"id": None}, {}])
    def test_unknown_defaults_to_balanced(self, raw):
        assert Personality.parse(raw) is Personality.BALANCED


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------

class TestRegistries:
    def test_every_personality_defined(self):
        assert set(PERSONALITY_DEFS) == set(Personality)
        for p in Personality:
            assert p.definition.personality is p

    def test_only_feral_attacks_monsters(self):
        hunters = [p for p, d in PERSONALITY_DEFS.items() if d.can_attack_monsters]
        assert hunters == [Personality.FERAL]

    def test_balanced_is_neutral(self):
        d = Personality.BALANCED.definition
        assert (d.explore, d.attack, d.gather, d.build) == (1.0, 1.0, 1.0, 1.0)

    def test_interrupt_chance_clamped(self):
        d = Personality.BALANCED.definition
        assert d.interrupt_chance(0.3) == pytest.approx(0.7)
        assert d.interrupt_chance(1.5) == 0.0
        assert d.interrupt_chance(-0.5) == 1.0

    def test_structure_defs_keyed_by_type(self):
        for key, sdef in STRUCTURE_DEFS.items():
            assert sdef.type == key
        for key, bdef in BUILDING_DEFS.items():
            assert bdef.type == key

    def test_definitions_frozen(self):
        with pytest.raises(Exception):
            Personality.FERAL.definition.attack = 0.0


class TestSerialization:
    def test_personality_def_dump(self):
        data = TypeAdapter(PersonalityDef).dump_python(Personality.NOMADIC.definition, mode="json")
        assert data["personality"] == "NOMADIC"
        assert data["explore"] == 1.8

    def test_structure_def_dump(self):
        data = TypeAdapter(StructureDef).dump_python(STRUCTURE_DEFS["monster_lair"], mode="json")
        assert data["type"] == "monster_lair"
        assert isinstance(data["build_time"], int)
