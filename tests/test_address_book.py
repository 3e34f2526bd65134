"""Tests for withdrawal destination lookup."""

from arbscan.core.address_book import WithdrawalAddressBook


class TestWithdrawalAddressBook:
    """Test address book lookups."""

    def setup_method(self):
        self.book = WithdrawalAddressBook.from_config({
            "bybit": {"BTC": "bc1-bybit", "eth": "0xbybit"},
            "okx": {"XRP": ""},
        })

    def test_lookup(self):
        assert self.book.lookup("bybit", "BTC") == "bc1-bybit"

    def test_asset_is_case_insensitive(self):
        assert self.book.lookup("bybit", "ETH") == "0xbybit"
        assert self.book.lookup("bybit", "btc") == "bc1-bybit"

    def test_missing_entries(self):
        assert self.book.lookup("okx", "BTC") is None
        assert self.book.lookup("binance", "BTC") is None

    def test_empty_addresses_are_ignored(self):
        assert self.book.lookup("okx", "XRP") is None
        assert len(self.book) == 2

    def test_contains(self):
        assert ("bybit", "BTC") in self.book
        assert ("okx", "XRP") not in self.book

    def test_exchanges_summary(self):
        assert self.book.exchanges() == {"bybit": ["BTC", "ETH"]}

    def test_empty_book(self):
        book = WithdrawalAddressBook()
        assert len(book) == 0
        assert book.lookup("bybit", "BTC") is None
