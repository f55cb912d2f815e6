"""Tests for Brand Matcher."""

import pytest

from brand_metrics.analysis.brand_matcher import span_within
from brand_metrics.analysis.errors import InvalidInputError
from brand_metrics.analysis.types import MatchMethod


class TestExactMatch:
    """Test whole-word matching of the name and its variants."""

    def test_exact_name(self, matcher):
        result = matcher.detect("I use Stripe for payments.", "Stripe")
        assert result.detected
        assert result.confidence == 1.0
        assert result.method == MatchMethod.EXACT
        assert result.matched_text == "Stripe"
        assert result.matched_span == (6, 12)

    def test_case_insensitive(self, matcher):
        assert matcher.detect("we moved to stripe last year", "Stripe").method == MatchMethod.EXACT

    def test_hyphenated_variant(self, matcher):
        result = matcher.detect("The American-Express lounge was busy.", "American Express")
        assert result.method == MatchMethod.EXACT

    def test_not_inside_longer_word(self, matcher):
        assert not matcher.detect("Payments via pipestripe gateway.", "Stripe").detected

    def test_empty_text(self, matcher):
        assert not matcher.detect("", "Stripe").detected
        assert not matcher.detect("   ", "Stripe").detected


class TestAbbreviationMatch:
    """Test acronym and known-abbreviation matching."""

    def test_known_abbreviation(self, matcher):
        result = matcher.detect("Amex is accepted widely.", "American Express")
        assert result.detected
        assert result.confidence == 0.9
        assert result.method == MatchMethod.ABBREVIATION
        assert result.matched_text == "Amex"

    def test_acronym(self, matcher):
        result = matcher.detect("TCS won the contract.", "Tata Consultancy Services")
        assert result.method == MatchMethod.ABBREVIATION
        assert result.confidence == 0.9

    def test_acronym_is_case_sensitive(self, matcher):
        assert not matcher.detect("our tcs deal closed.", "Tata Consultancy Services").detected


class TestTokenMatch:
    """Test matching on the significant tokens of a name."""

    def test_all_tokens_close_together(self, matcher):
        result = matcher.detect("Revolut now offers business accounts.", "Revolut Business")
        assert result.method == MatchMethod.SUBSTRING
        assert result.confidence == pytest.approx(0.85)
        assert result.matched_text == "Revolut now offers business"
        assert result.matched_span == (0, 27)

    def test_all_tokens_far_apart(self, matcher):
        text = (
            "Revolut is a fintech that started in London and now also serves "
            "many small and medium business customers."
        )
        result = matcher.detect(text, "Revolut Business")
        assert result.method == MatchMethod.SUBSTRING
        assert result.confidence == pytest.approx(0.7)

    def test_one_token_of_many_is_not_enough(self, matcher):
        assert not matcher.detect("Revolut launched a new feature.", "Revolut Business").detected

    def test_shared_first_word_is_another_brand(self, matcher):
        assert not matcher.detect("American Airlines has great airport lounges.", "American Express").detected

    def test_shared_last_word_is_another_brand(self, matcher):
        assert not matcher.detect("Most banks in America charge overdraft fees.", "Bank of America").detected

    def test_single_token_name(self, matcher):
        result = matcher.detect("We pay through Stripe every month.", "Stripe, Inc.")
        assert result.method == MatchMethod.SUBSTRING
        assert result.confidence == pytest.approx(0.85)
        assert result.matched_text == "Stripe"

    def test_generic_tokens_never_match_alone(self, matcher):
        assert not matcher.detect("We offer a platinum experience.", "Platinum Rewards").detected
        assert not matcher.detect("Rewards on every platinum purchase.", "Platinum Rewards").detected


class TestFuzzyMatch:
    """Test Levenshtein window matching."""

    def test_misspelling(self, matcher):
        result = matcher.detect("Many people use Stripee for invoices.", "Stripe")
        assert result.method == MatchMethod.FUZZY
        assert result.matched_text == "Stripee"
        assert 0.7 < result.confidence < 0.85

    def test_lowercase_candidate_ignored(self, matcher):
        assert not matcher.detect("many people use stripee for invoices.", "Stripe").detected


class TestCrossBrandPrecision:
    """Test that shared generic words never link two different brands."""

    def test_hdfc_card_is_not_amex_card(self, matcher):
        text = "HDFC Bank Platinum Debit Card offers cashback."
        assert not matcher.detect(text, "American Express Platinum Card").detected

    def test_amex_card_is_not_hdfc_card(self, matcher):
        text = "The American Express Platinum Card has lounge access."
        assert not matcher.detect(text, "HDFC Bank Platinum Debit Card").detected
        assert matcher.detect(text, "American Express Platinum Card").method == MatchMethod.EXACT


class TestCountMentions:
    """Test count_mentions()."""

    def test_repeated_name(self, matcher):
        assert matcher.count_mentions("Stripe and stripe again, STRIPE!", "Stripe") == 3

    def test_name_and_abbreviation(self, matcher):
        assert matcher.count_mentions("American Express, also called Amex.", "American Express") == 2

    def test_no_mentions(self, matcher):
        assert matcher.count_mentions("Nothing relevant here.", "Stripe") == 0

    def test_shadowed_by_longer_name(self, matcher):
        sentence = "JPMorgan Chase owns Chase Sapphire."
        longer = matcher.exact_spans(sentence, "JPMorgan Chase")
        assert longer == [(0, 14)]
        assert matcher.count_mentions(sentence, "Chase") == 2
        assert matcher.count_mentions(sentence, "Chase", shadowed=longer) == 1


class TestInvalidBrand:
    """Test blank brand names."""

    def test_blank_brand_raises(self, matcher):
        with pytest.raises(InvalidInputError):
            matcher.detect("Stripe is great.", "  ")


class TestSpanWithin:
    def test_strictly_inside(self):
        assert span_within((9, 14), [(0, 14)])
        assert not span_within((0, 14), [(0, 14)])
        assert not span_within((10, 20), [(0, 14)])
        assert not span_within((9, 14), [])
