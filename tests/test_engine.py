"""Engine behavior against an in-memory capability surface."""

import pytest

from pdfbake.colors import BLACK, YELLOW, Color
from pdfbake.config import EngineConfig
from pdfbake.engine import MutationEngine
from pdfbake.errors import DocumentLoadError, DocumentSaveError
from conftest import LETTER, FakeDocument, data_url


def _engine(doc: FakeDocument, logs: list[str] | None = None) -> MutationEngine:
    return MutationEngine(
        config=EngineConfig(font_name="Helvetica", rect_opacity=0.4),
        loader=lambda data: doc,
        log_fn=logs.append if logs is not None else None,
    )


def _text(id_, page=1, x=0, y=0, **kw):
    return {"id": id_, "type": "text", "page": page, "x": x, "y": y, "text": kw.pop("text", "hello"), **kw}


def _rect(id_, page=1, x=0, y=0, width=10, height=10, **kw):
    return {"id": id_, "type": "rect", "page": page, "x": x, "y": y, "width": width, "height": height, **kw}


class TestCoordinateMapping:
    def test_text_point(self):
        doc = FakeDocument([LETTER])
        _engine(doc).apply(b"src", [_text("t", x=50, y=100)])
        op, args = doc.pages[0].ops[0]
        assert op == "text"
        assert (args["x"], args["y"]) == (50.0, 692.0)
        assert args["size"] == 12
        assert args["color"] == BLACK
        assert args["font"] == "font:Helvetica"

    def test_rect_box(self):
        doc = FakeDocument([LETTER])
        _engine(doc).apply(b"src", [_rect("r", x=10, y=10, width=50, height=20)])
        op, args = doc.pages[0].ops[0]
        assert op == "rect"
        assert (args["x"], args["y"], args["width"], args["height"]) == (10.0, 762.0, 50.0, 20.0)
        assert args["color"] == YELLOW
        assert args["opacity"] == pytest.approx(0.4)

    def test_image_uses_box_mapping(self):
        doc = FakeDocument([LETTER])
        ann = {"id": "i", "type": "image", "page": 1, "x": 10, "y": 10, "width": 50, "height": 20,
               "image": data_url("png")}
        _engine(doc).apply(b"src", [ann])
        op, args = doc.pages[0].ops[0]
        assert op == "image"
        assert (args["x"], args["y"], args["width"], args["height"]) == (10.0, 762.0, 50.0, 20.0)
        assert args["image"][1] == "png"

    def test_path_origin_is_a_point(self):
        doc = FakeDocument([LETTER])
        ann = {"id": "p", "type": "path", "page": 1, "x": 30, "y": 40, "path": "M0 0 L10 10",
               "color": "#0000ff", "strokeWidth": 3}
        _engine(doc).apply(b"src", [ann])
        op, args = doc.pages[0].ops[0]
        assert op == "path"
        assert (args["x"], args["y"]) == (30.0, 752.0)
        assert args["color"] == Color(r=0.0, g=0.0, b=1.0)
        assert args["stroke_width"] == 3
        assert [s.op for s in args["segments"]] == ["M", "L"]

    def test_uses_height_of_the_annotated_page(self):
        doc = FakeDocument([LETTER, (400.0, 300.0)])
        _engine(doc).apply(b"src", [_text("t", page=2, x=5, y=100)])
        assert doc.pages[0].ops == []
        _, args = doc.pages[1].ops[0]
        assert args["y"] == 200.0


class TestOrderingAndDispatch:
    def test_caller_order_is_draw_order(self):
        doc = FakeDocument([LETTER, LETTER])
        anns = [
            _rect("a", color="#ff0000"),
            _text("b", page=2),
            _rect("c", color="#0000ff"),
            {"id": "d", "type": "path", "page": 2, "x": 0, "y": 0, "path": "M0 0 L1 1"},
        ]
        _engine(doc).apply(b"src", anns)
        assert doc.journal == [(0, "rect"), (1, "text"), (0, "rect"), (1, "path")]
        colors = [args["color"] for op, args in doc.pages[0].ops]
        assert colors == [Color(r=1.0, g=0.0, b=0.0), Color(r=0.0, g=0.0, b=1.0)]

    def test_font_embedded_once(self):
        doc = FakeDocument([LETTER])
        _engine(doc).apply(b"src", [_text("a"), _text("b"), _text("c")])
        assert doc.fonts == ["Helvetica"]
        assert {args["font"] for _, args in doc.pages[0].ops} == {"font:Helvetica"}

    def test_malformed_color_draws_black(self):
        doc = FakeDocument([LETTER])
        result = _engine(doc).apply(b"src", [_rect("r", color="notahex")])
        assert result.annotations[0].status == "applied"
        assert doc.pages[0].ops[0][1]["color"] == BLACK


class TestSkipsAndIsolation:
    def test_out_of_range_page_is_inert(self):
        doc = FakeDocument([LETTER])
        result = _engine(doc).apply(b"src", [_text("far", page=5), _text("ok")])
        assert [o.status for o in result.annotations] == ["skipped", "applied"]
        assert "out of range" in result.annotations[0].reason
        assert len(doc.pages[0].ops) == 1

    def test_annotation_on_deleted_page_is_inert(self):
        doc = FakeDocument([LETTER, LETTER])
        result = _engine(doc).apply(b"src", [_text("gone", page=1), _text("kept", page=2)], {0})
        assert [o.status for o in result.annotations] == ["skipped", "applied"]
        assert "deletion" in result.annotations[0].reason

    def test_invalid_record_skipped_batch_continues(self):
        doc = FakeDocument([LETTER])
        logs: list[str] = []
        result = _engine(doc, logs).apply(
            b"src", [_rect("bad", width=0), {"id": "x", "type": "text", "page": 0, "x": 0, "y": 0, "text": "t"},
                     _rect("good")]
        )
        assert [o.status for o in result.annotations] == ["skipped", "skipped", "applied"]
        assert result.annotations[0].reason.startswith("invalid:")
        assert any("rejected" in line for line in logs)
        assert len(doc.pages[0].ops) == 1

    def test_non_finite_coordinates_reported_skipped(self):
        doc = FakeDocument([LETTER])
        result = _engine(doc).apply(b"src", [_rect("good"), _rect("nan", x=float("nan")), _rect("inf", width=float("inf"))])
        assert [o.status for o in result.annotations] == ["applied", "skipped", "skipped"]
        assert len(doc.pages[0].ops) == 1

    def test_image_embed_failure_isolated(self):
        doc = FakeDocument([LETTER], fail_images=True)
        logs: list[str] = []
        img = {"id": "i", "type": "image", "page": 1, "x": 0, "y": 0, "width": 4, "height": 4,
               "image": data_url("png")}
        result = _engine(doc, logs).apply(b"src", [_rect("before"), img, _rect("after")])
        assert [o.status for o in result.annotations] == ["applied", "failed", "applied"]
        assert result.annotations[1].reason == "corrupt image"
        assert any("failed" in line for line in logs)
        assert [op for op, _ in doc.pages[0].ops] == ["rect", "rect"]

    def test_outcomes_carry_index_and_id(self):
        doc = FakeDocument([LETTER])
        result = _engine(doc).apply(b"src", [_text("first"), _rect("second")])
        assert [(o.index, o.annotation_id, o.kind) for o in result.annotations] == [
            (0, "first", "text"),
            (1, "second", "rect"),
        ]


class TestDeletions:
    def test_highest_index_first(self):
        doc = FakeDocument([LETTER, LETTER, LETTER])
        result = _engine(doc).apply(b"src", [], {0, 2})
        assert doc.removed == [2, 0]
        assert result.page_count == 1
        assert [p.index for p in doc.pages] == [1]

    def test_out_of_range_index_skipped(self):
        doc = FakeDocument([LETTER, LETTER])
        result = _engine(doc).apply(b"src", [], {7, 1, -1})
        assert doc.removed == [1]
        assert [(d.index, d.status) for d in result.deletions] == [(7, "skipped"), (1, "applied"), (-1, "skipped")]

    def test_annotations_drawn_before_pages_removed(self):
        doc = FakeDocument([LETTER, LETTER])
        _engine(doc).apply(b"src", [_text("t", page=2)], {0})
        # page that used to be index 1 carries the text and survives
        assert doc.pages[0].index == 1
        assert doc.pages[0].ops[0][0] == "text"


class TestFatalErrors:
    def test_load_failure(self):
        def boom(data):
            raise ValueError("not a pdf")

        engine = MutationEngine(loader=boom)
        with pytest.raises(DocumentLoadError) as exc_info:
            engine.apply(b"garbage", [])
        assert "not a pdf" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_save_failure(self):
        doc = FakeDocument([LETTER], fail_save=True)
        with pytest.raises(DocumentSaveError):
            _engine(doc).apply(b"src", [_text("t")])
        assert doc.closed

    def test_document_closed_on_success(self):
        doc = FakeDocument([LETTER])
        result = _engine(doc).apply(b"src", [])
        assert doc.closed
        assert result.data.startswith(b"%PDF-fake")


class TestReport:
    def test_to_dict(self):
        doc = FakeDocument([LETTER, LETTER])
        result = _engine(doc).apply(b"src", [_text("a"), _text("b", page=9)], {1})
        report = result.to_dict()
        assert report["page_count"] == 1
        assert [a["status"] for a in report["annotations"]] == ["applied", "skipped"]
        assert report["deletions"] == [{"index": 1, "status": "applied", "reason": None}]
        assert result.count("applied") == 1
