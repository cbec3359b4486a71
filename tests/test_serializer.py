import copy
import json
import random
import unittest

from fluff.core.bet import Bet
from fluff.core.config import GameConfig
from fluff.core.game import Game
from fluff.core.player import Player
from fluff.core.round import Round
from fluff.core.state import GamePhase, RoundPhase
from fluff.persistence import serializer
from fluff.persistence.recorder import InMemoryRecorder


def four_player_game(seed=7):
    players = [Player("Unga"), Player("Bunga"), Player("Ooga"), Player("Booga")]
    return Game.new(players, GameConfig(), rng=random.Random(seed))


def edited(snapshot, path, value):
    """Deep copy of `snapshot` with the entry at `path` replaced by `value`."""
    snapshot = copy.deepcopy(snapshot)
    target = snapshot
    for key in path[:-1]:
        target = target[key]
    target[path[-1]] = value
    return snapshot


class TestGameRoundTrip(unittest.TestCase):
    """
    Tests that a Game saved with `serializer.dumps` loads back equal, in every phase,
    with seating order, turn history and shared player identity intact.
    """

    def assertRoundTrips(self, game):
        text = serializer.dumps(game)
        loaded = serializer.loads(text)
        self.assertEqual(loaded, game)
        self.assertEqual(list(loaded.player_dice_counts), list(game.player_dice_counts))
        self.assertEqual(serializer.dumps(loaded), text)
        return loaded

    def test_fresh_game(self):
        loaded = self.assertRoundTrips(four_player_game())
        self.assertIs(loaded.curr_round.phase, RoundPhase.FRESH)

    def test_betting_game(self):
        game = four_player_game()
        game = game.raise_bet(Bet(2, 3))
        game.raise_bet(Bet(2, 5))
        game.raise_bet(Bet(4, 2))
        loaded = self.assertRoundTrips(game)
        self.assertIs(loaded.curr_round.phase, RoundPhase.BETTING)
        self.assertEqual([t.bet for t in loaded.curr_round.turns], [Bet(2, 3), Bet(2, 5), Bet(4, 2)])
        self.assertEqual(loaded.curr_round.current_player, Player("Booga"))

    def test_game_with_history(self):
        game = four_player_game()
        for _ in range(3):
            game = game.raise_bet(Bet(1, 4))
            game = game.raise_bet(Bet(3, 4))
            game = game.call_fluff().game
        loaded = self.assertRoundTrips(game)
        self.assertEqual(len(loaded.round_history), 3)
        for finished in loaded.round_history:
            self.assertIs(finished.phase, RoundPhase.RESOLVED)

    def test_finished_game(self):
        a, b = Player("A"), Player("B")
        game = Game.new([a, b], GameConfig(max_dice=1, max_roll=3), rng=random.Random(1))
        game = game.raise_bet(Bet(2, 3)).call_fluff().game
        self.assertIs(game.phase, GamePhase.GAME_OVER)
        loaded = self.assertRoundTrips(game)
        self.assertEqual(loaded.winner, game.winner)
        self.assertEqual(loaded.config, GameConfig(max_dice=1, max_roll=3))

    def test_loaded_game_shares_player_objects(self):
        game = four_player_game()
        game = game.raise_bet(Bet(1, 2))
        game = game.raise_bet(Bet(1, 3)).call_fluff().game
        loaded = serializer.loads(serializer.dumps(game))
        canonical = {p.name: p for p in loaded.player_dice_counts}
        for p in loaded.curr_round.players_rolls:
            self.assertIs(p, canonical[p.name])
        old = loaded.round_history[0]
        for turn in old.turns:
            self.assertIs(turn.player, canonical[turn.player.name])
        self.assertIs(old.state_data.caller, canonical[old.state_data.caller.name])
        self.assertIs(loaded.curr_round.current_player, canonical[loaded.curr_round.current_player.name])

    def test_loaded_game_keeps_playing(self):
        game = four_player_game().raise_bet(Bet(1, 2))
        loaded = serializer.loads(serializer.dumps(game))
        loaded.raise_bet(Bet(1, 3))
        transition = loaded.call_fluff()
        self.assertEqual(sum(transition.game.player_dice_counts.values()), 19)


class TestSnapshotFormat(unittest.TestCase):
    def test_tables_are_ordered_pairs(self):
        game = Game.new([Player("Zed"), Player("Amy")], rng=random.Random(3))
        data = json.loads(serializer.dumps(game))
        self.assertEqual(data["player_dice_counts"], [["Zed", 5], ["Amy", 5]])
        self.assertEqual([name for name, _ in data["state"]["curr_round"]["players_rolls"]], ["Zed", "Amy"])
        self.assertEqual(data["state"]["phase"], "in_round")
        self.assertEqual(data["state"]["curr_round"]["state"], {"phase": "fresh", "first_player": "Zed"})

    def test_round_round_trip(self):
        round_ = Round.new({Player("A"): 2, Player("B"): 3}, 6, rng=random.Random(9))
        round_ = round_.raise_bet(Bet(1, 6))
        data = serializer.round_to_dict(round_)
        self.assertEqual(data["turns"], [{"player": "A", "bet": {"count": 1, "roll": 6}}])
        self.assertEqual(serializer.round_from_dict(data), round_)

    def test_bet_round_trip(self):
        self.assertEqual(serializer.bet_from_dict(serializer.bet_to_dict(Bet(3, 2))), Bet(3, 2))

    def test_malformed_snapshots_raise_value_error(self):
        good = serializer.game_to_dict(four_player_game())
        betting = serializer.game_to_dict(four_player_game().raise_bet(Bet(2, 3)))
        called = serializer.game_to_dict(four_player_game().raise_bet(Bet(2, 3)).call_fluff().game)
        for broken in [
            {},
            dict(good, state={"phase": "sideways"}),
            dict(good, config={"max_dice": 0, "max_roll": 6}),
            dict(good, player_dice_counts=[[3, 5]]),
            # Turn counts that do not fit the phase
            edited(betting, ("state", "curr_round", "turns"), []),
            edited(called, ("round_history", 0, "turns"), []),
            edited(good, ("state", "curr_round", "turns"), [{"player": "Unga", "bet": {"count": 1, "roll": 2}}]),
            # Players missing from the round's table
            edited(good, ("state", "curr_round", "state", "first_player"), "Nobody"),
            edited(betting, ("state", "curr_round", "state", "curr_player"), "Nobody"),
            edited(betting, ("state", "curr_round", "turns", 0, "player"), "Nobody"),
            edited(called, ("round_history", 0, "state", "caller"), "Nobody"),
            edited(called, ("round_history", 0, "state", "better"), "Nobody"),
            # Loosely typed values
            edited(called, ("round_history", 0, "state", "was_fluff"), "false"),
            edited(called, ("round_history", 0, "state", "was_fluff"), 0),
            edited(good, ("state", "curr_round", "players_rolls", 0, 1, 0), "5"),
            edited(good, ("state", "curr_round", "players_rolls", 0, 1, 0), True),
            edited(good, ("player_dice_counts", 0, 1), "5"),
            edited(good, ("player_dice_counts", 0, 1), True),
            edited(good, ("player_dice_counts", 0, 1), -1),
            # Rounds in the wrong place
            edited(called, ("round_history", 0), betting["state"]["curr_round"]),
            edited(called, ("state", "curr_round"), called["round_history"][0]),
        ]:
            with self.subTest(broken=broken):
                with self.assertRaises(ValueError):
                    serializer.game_from_dict(broken)

    def test_loose_was_fluff_is_not_read_as_true(self):
        called = serializer.game_to_dict(four_player_game().raise_bet(Bet(2, 3)).call_fluff().game)
        self.assertIsInstance(called["round_history"][0]["state"]["was_fluff"], bool)
        with self.assertRaises(ValueError):
            serializer.game_from_dict(edited(called, ("round_history", 0, "state", "was_fluff"), "false"))

    def test_events_to_list(self):
        recorder = InMemoryRecorder()
        Game.new([Player("A"), Player("B")], recorder=recorder)
        events = serializer.events_to_list(recorder.events())
        self.assertEqual(events[0]["event_type"], "RoundStarted")
        self.assertEqual(events[0]["payload"]["first_player"], "A")
        json.dumps(events)


if __name__ == '__main__':
    unittest.main()
