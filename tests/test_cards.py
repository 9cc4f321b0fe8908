import random

import pytest

from bot.systems.cards import (
    BlackjackHand,
    BlackjackOutcome,
    Card,
    PokerHand,
    blackjack_score,
    evaluate_poker_hand,
    is_natural,
    new_deck,
    play_coin_flip,
    play_poker,
    poker_net,
)


def cards(*specs):
    return [Card(rank, suit) for rank, suit in (s.split(":") for s in specs)]


def test_deck_has_52_unique_cards():
    deck = new_deck(random.Random(1))
    assert len(deck) == 52
    assert len(set(deck)) == 52


def test_aces_soften():
    assert blackjack_score(cards("A:♠️", "K:♥️")) == 21
    assert blackjack_score(cards("A:♠️", "A:♥️", "9:♦️")) == 21
    assert blackjack_score(cards("A:♠️", "K:♥️", "5:♦️")) == 16


def test_natural_is_two_cards_only():
    assert is_natural(cards("A:♠️", "K:♥️"))
    three_card_21 = cards("7:♠️", "7:♥️", "7:♦️")
    assert blackjack_score(three_card_21) == 21
    assert not is_natural(three_card_21)


def _hand(player, dealer, deck=()):
    return BlackjackHand(bet=100, payout=2.0, deck=list(deck), player=player, dealer=dealer)


def test_dealer_draws_to_seventeen():
    hand = _hand(cards("10:♠️", "9:♥️"), cards("10:♦️", "2:♣️"), deck=cards("3:♠️", "4:♠️"))
    hand.stand()
    # deck pops from the end
    assert hand.dealer_score == 19
    assert hand.outcome is BlackjackOutcome.PUSH
    assert hand.net == 0


def test_bust_and_payouts():
    hand = _hand(cards("10:♠️", "9:♥️"), cards("10:♦️", "7:♣️"), deck=cards("5:♠️"))
    hand.hit()
    assert hand.outcome is BlackjackOutcome.BUST
    assert hand.net == -100
    with pytest.raises(ValueError):
        hand.stand()

    win = _hand(cards("10:♠️", "9:♥️"), cards("10:♦️", "7:♣️"))
    win.stand()
    assert win.outcome is BlackjackOutcome.WIN
    assert win.net == 200

    dealer_bust = _hand(cards("10:♠️", "2:♥️"), cards("10:♦️", "6:♣️"), deck=cards("K:♠️"))
    dealer_bust.stand()
    assert dealer_bust.outcome is BlackjackOutcome.DEALER_BUST


def test_open_hand_has_no_net():
    hand = _hand(cards("10:♠️", "2:♥️"), cards("10:♦️", "6:♣️"))
    with pytest.raises(ValueError):
        hand.net


def test_deal_detects_natural():
    for seed in range(200):
        hand = BlackjackHand.deal(50, 2.0, random.Random(seed))
        assert len(hand.player) == 2 and len(hand.dealer) == 2
        assert len(hand.deck) == 48
        assert (hand.outcome is BlackjackOutcome.BLACKJACK) == is_natural(hand.player)


@pytest.mark.parametrize(
    "hand,expected",
    [
        (("10:♠️", "J:♠️", "Q:♠️", "K:♠️", "A:♠️"), PokerHand.ROYAL_FLUSH),
        (("9:♥️", "10:♥️", "J:♥️", "Q:♥️", "K:♥️"), PokerHand.STRAIGHT_FLUSH),
        (("9:♥️", "9:♠️", "9:♦️", "9:♣️", "K:♥️"), PokerHand.FOUR_OF_A_KIND),
        (("9:♥️", "9:♠️", "9:♦️", "K:♣️", "K:♥️"), PokerHand.FULL_HOUSE),
        (("2:♥️", "7:♥️", "9:♥️", "J:♥️", "K:♥️"), PokerHand.FLUSH),
        (("A:♥️", "2:♠️", "3:♦️", "4:♣️", "5:♥️"), PokerHand.STRAIGHT),
        (("9:♥️", "9:♠️", "9:♦️", "2:♣️", "K:♥️"), PokerHand.THREE_OF_A_KIND),
        (("9:♥️", "9:♠️", "2:♦️", "2:♣️", "K:♥️"), PokerHand.TWO_PAIR),
        (("9:♥️", "9:♠️", "3:♦️", "2:♣️", "K:♥️"), PokerHand.PAIR),
        (("9:♥️", "7:♠️", "3:♦️", "2:♣️", "K:♥️"), PokerHand.HIGH_CARD),
    ],
)
def test_poker_categories(hand, expected):
    assert evaluate_poker_hand(cards(*hand)) is expected


def test_poker_needs_five_cards():
    with pytest.raises(ValueError):
        evaluate_poker_hand(cards("A:♠️", "K:♠️"))


def test_poker_net():
    assert poker_net(100, 0) == -100
    assert poker_net(100, 1) == 0
    assert poker_net(100, 3) == 200

    result = play_poker(100, {}, random.Random(3))
    assert result.multiplier == 0
    assert result.net == -100
    assert len(result.cards) == 5


def test_coin_flip():
    rng = random.Random(7)
    for _ in range(50):
        result = play_coin_flip(100, "Heads", 2.0, rng)
        assert result.landed in ("heads", "tails")
        assert result.net == (200 if result.won else -100)
    with pytest.raises(ValueError):
        play_coin_flip(100, "edge", 2.0, rng)
