import tempfile
import threading
from pathlib import Path

from conftest import curve_xml, document_xml
from curve_viewer.config import ViewerConfig
from curve_viewer.ingest.pool import ParsePool, ParseRequest, parse_files_parallel, parse_paths, split_chunks
from curve_viewer.progress import CancelToken


def _write_files(root: Path, n: int):
    paths = []
    for i in range(n):
        p = root / f"f{i:02d}.xml"
        p.write_text(document_xml([curve_xml()], id_string=f"P{i}"), encoding="utf-8")
        paths.append(p)
    return paths


def test_split_chunks():
    paths = [str(i) for i in range(12)]
    assert [len(c) for c in split_chunks(paths, 4)] == [5, 5, 2]
    assert [len(c) for c in split_chunks(paths, 2)] == [6, 6]
    assert split_chunks([], 3) == []


def test_parse_paths_reports_failures():
    with tempfile.TemporaryDirectory() as d:
        good = _write_files(Path(d), 1)[0]
        res = parse_paths([str(good), str(Path(d) / "missing.xml")])
        assert res.results[0] is not None
        assert res.results[1] is None
        assert len(res.skipped) == 1


def test_pool_queues_requests_beyond_its_size():
    with tempfile.TemporaryDirectory() as d:
        paths = [str(p) for p in _write_files(Path(d), 4)]
        done = threading.Event()
        results = []
        lock = threading.Lock()

        def _cb(res):
            with lock:
                results.append(res)
                if len(results) == 4:
                    done.set()

        with ParsePool(size=1) as pool:
            for p in paths:
                pool.submit(ParseRequest((p,)), _cb)
            assert done.wait(timeout=30)
            assert pool.pending_count == 0
        assert sum(len(r.results) for r in results) == 4


def test_failing_callback_still_dispatches_queued_requests():
    with tempfile.TemporaryDirectory() as d:
        paths = [str(p) for p in _write_files(Path(d), 3)]
        done = threading.Event()
        results = []

        def _boom(res):
            raise RuntimeError("callback failed")

        def _cb(res):
            results.append(res)
            if len(results) == 2:
                done.set()

        with ParsePool(size=1) as pool:
            pool.submit(ParseRequest((paths[0],)), _boom)
            pool.submit(ParseRequest((paths[1],)), _cb)
            pool.submit(ParseRequest((paths[2],)), _cb)
            assert done.wait(timeout=30)
            assert pool.pending_count == 0
        assert [r.results[0].label for r in results] == ["P1", "P2"]


def test_parse_files_parallel_collects_everything():
    with tempfile.TemporaryDirectory() as d:
        paths = _write_files(Path(d), 13)
        batches = []
        report = parse_files_parallel(
            paths,
            config=ViewerConfig(workers=2, batch_size=3, min_chunk_size=5),
            on_batch=batches.append,
        )
        assert report.n_imported == 13
        assert report.submitted == 13
        assert sorted(f.label for f in report.files) == sorted(f"P{i}" for i in range(13))
        assert max(b.completed for b in batches) == 13
        assert all(b.total == 13 for b in batches)


def test_parse_files_parallel_cancelled_before_start():
    with tempfile.TemporaryDirectory() as d:
        paths = _write_files(Path(d), 6)
        token = CancelToken()
        token.cancel()
        report = parse_files_parallel(paths, config=ViewerConfig(workers=2), cancel=token)
        assert report.cancelled
        assert report.n_imported == 0
