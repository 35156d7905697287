from splitbook.money import TOLERANCE, approx_equal, is_zero, round_money


def test_is_zero_within_tolerance():
    assert is_zero(0.0)
    assert is_zero(0.005)
    assert is_zero(-TOLERANCE)
    assert not is_zero(0.02)
    assert not is_zero(-0.5)


def test_approx_equal_absorbs_float_noise():
    assert approx_equal(0.1 + 0.2, 0.3)
    assert approx_equal(100.0, 99.995)
    assert not approx_equal(100.0, 99.0)


def test_round_money_folds_negative_zero():
    assert round_money(43.333333) == 43.33
    assert str(round_money(-0.001)) == "0.0"
