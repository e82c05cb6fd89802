from pdf_geometry import rect_bounds, round_to, texts_in_bounds
from pdf_models import RectBounds, RectRecord, TextFragment


class TestRectBounds:
    def test_edges(self):
        assert rect_bounds(RectRecord(10, 20, 30, 40)) == RectBounds(10, 20, 40, 60)


class TestTextsInBounds:
    bounds = RectBounds(left_x=0, bottom_y=0, right_x=100, top_y=50)

    def test_edges_are_inclusive(self):
        texts = [TextFragment(0, 0, "a"), TextFragment(100, 50, "b"), TextFragment(101, 10, "c")]
        assert [t.text for t in texts_in_bounds(texts, self.bounds)] == ["a", "b"]

    def test_keeps_input_order(self):
        texts = [TextFragment(50, 10, "z"), TextFragment(10, 40, "a")]
        assert [t.text for t in texts_in_bounds(texts, self.bounds)] == ["z", "a"]

    def test_offsets_shift_window_down(self):
        texts = [TextFragment(10, 48, "top"), TextFragment(10, -5, "below")]
        found = texts_in_bounds(texts, self.bounds, top_offset=4, bottom_offset=6)
        assert [t.text for t in found] == ["below"]


class TestRoundTo:
    def test_four_places(self):
        assert round_to(12.345678) == 12.3457
        assert round_to(480.0) == 480.0

    def test_half_away_from_zero(self):
        assert round_to(0.5, 0) == 1.0
        assert round_to(2.5, 0) == 3.0
        assert round_to(-2.5, 0) == -3.0

    def test_close_values_share_a_key(self):
        assert round_to(419.99999) == round_to(420.00001)
