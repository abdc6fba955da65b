"""Tests for Binance HMAC-SHA256 request signing."""

import hashlib
import hmac

from eva.exchange.signing import build_query_string, build_signed_query, sign_query

SECRET = "NhqPtmdSJYdKjVHjA7PZj4Mge3R5YNiP1e3UZjInClVN65XAbvqqM6A7H5fATj0j"


class TestBuildQueryString:
    def test_keeps_insertion_order(self) -> None:
        params = {"symbol": "BTCUSDT", "side": "BUY", "type": "MARKET", "quantity": "0.001"}
        assert build_query_string(params) == "symbol=BTCUSDT&side=BUY&type=MARKET&quantity=0.001"

    def test_skips_none(self) -> None:
        assert build_query_string({"symbol": "BTCUSDT", "price": None, "limit": 5}) == (
            "symbol=BTCUSDT&limit=5"
        )

    def test_url_encodes_values(self) -> None:
        assert build_query_string({"note": "a b/c"}) == "note=a%20b%2Fc"

    def test_empty(self) -> None:
        assert build_query_string({}) == ""


class TestSignQuery:
    def test_is_deterministic(self) -> None:
        query = "symbol=LTCBTC&side=BUY&type=LIMIT&timeInForce=GTC&quantity=1&price=0.1"
        assert sign_query(query, SECRET) == sign_query(query, SECRET)

    def test_matches_hmac_sha256_hex(self) -> None:
        query = "symbol=BTCUSDT&timestamp=1499827319559"
        expected = hmac.new(SECRET.encode(), query.encode(), hashlib.sha256).hexdigest()
        assert sign_query(query, SECRET) == expected
        assert len(expected) == 64

    def test_binance_documented_example(self) -> None:
        query = (
            "symbol=LTCBTC&side=BUY&type=LIMIT&timeInForce=GTC&quantity=1"
            "&price=0.1&recvWindow=5000&timestamp=1499827319559"
        )
        assert sign_query(query, SECRET) == (
            "c8db56825ae71d6d79447849e617115f4a920fa2acdcab2b053c4b2838bd6b71"
        )

    def test_secret_changes_signature(self) -> None:
        query = "symbol=BTCUSDT&timestamp=1"
        assert sign_query(query, SECRET) != sign_query(query, SECRET + "x")


class TestBuildSignedQuery:
    def test_signature_is_last_and_covers_timestamp(self) -> None:
        signed = build_signed_query({"symbol": "BTCUSDT"}, SECRET, timestamp=1700000000000)
        query, _, signature = signed.rpartition("&signature=")
        assert query == "symbol=BTCUSDT&timestamp=1700000000000"
        assert signature == sign_query(query, SECRET)

    def test_recv_window_precedes_timestamp(self) -> None:
        signed = build_signed_query({}, SECRET, timestamp=42, recv_window=5000)
        assert signed.startswith("recvWindow=5000&timestamp=42&signature=")

    def test_same_timestamp_same_signature(self) -> None:
        params = {"symbol": "BTCUSDT", "side": "SELL"}
        assert build_signed_query(params, SECRET, 7) == build_signed_query(params, SECRET, 7)

    def test_fresh_timestamp_changes_signature(self) -> None:
        params = {"symbol": "BTCUSDT"}
        assert build_signed_query(params, SECRET, 7) != build_signed_query(params, SECRET, 8)

    def test_does_not_mutate_params(self) -> None:
        params = {"symbol": "BTCUSDT"}
        build_signed_query(params, SECRET, timestamp=1, recv_window=1000)
        assert params == {"symbol": "BTCUSDT"}
