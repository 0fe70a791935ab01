import logging

import pytest

from playoutgraph.components.filter import ChainState, FilterGraph, FilterType

V = FilterType.VIDEO
A = FilterType.AUDIO

CUDA_DECODER = {"decoder": {"input_param": "-hwaccel cuda -hwaccel_output_format cuda"}}


def _balanced(text: str) -> bool:
    depth = 0
    for c in text:
        if c == "[":
            depth += 1
        elif c == "]":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def test_empty_graph_has_no_filter_complex(make_config):
    graph = FilterGraph(make_config())
    assert graph.cmd() == []
    assert graph.map() == ["-map", "0:v", "-map", "0:a:0"]


def test_audio_only_map_skips_video(make_config):
    graph = FilterGraph(make_config(processing={"audio_only": True, "audio_tracks": 2}))
    assert graph.map() == ["-map", "0:a:0", "-map", "0:a:1"]


def test_same_track_appends_are_comma_joined(make_config):
    graph = FilterGraph(make_config())
    graph.add_filter("scale=1024:576", 0, V)
    graph.add_filter("fps=25", 0, V)

    assert graph.video_chain == "[0:v:0]scale=1024:576,fps=25"
    assert graph.state(V) is ChainState.OPEN_CHAIN
    assert graph.cmd() == ["-filter_complex", "[0:v:0]scale=1024:576,fps=25[vout0]"]
    assert graph.map() == ["-map", "[vout0]", "-map", "0:a:0"]


def test_first_append_creates_one_label_and_map_pair(make_config):
    graph = FilterGraph(make_config())
    graph.add_filter("anull", 0, A)
    assert graph.audio_map == ["[aout0]"]
    assert graph.output_map == ["-map", "[aout0]"]

    graph.add_filter("volume=0.5", 0, A)
    assert graph.audio_map == ["[aout0]"]
    assert graph.output_map == ["-map", "[aout0]"]


def test_track_switch_closes_previous_chain(make_config):
    graph = FilterGraph(make_config(processing={"audio_tracks": 2}))
    graph.add_filter("anull", 0, A)
    graph.add_filter("anull", 1, A)

    assert graph.audio_chain == "[0:a:0]anull[aout0];[0:a:1]anull"
    assert graph.audio_last == 1
    assert graph.cmd() == [
        "-filter_complex",
        "[0:a:0]anull[aout0];[0:a:1]anull[aout1]",
    ]


def test_video_and_audio_halves_are_joined(make_config):
    graph = FilterGraph(make_config())
    graph.add_filter("null", 0, V)
    graph.add_filter("anull", 0, A)

    assert graph.cmd() == ["-filter_complex", "[0:v:0]null[vout0];[0:a:0]anull[aout0]"]
    assert graph.map() == ["-map", "[vout0]", "-map", "[aout0]"]


def test_reopened_track_keeps_single_map_entry(make_config):
    graph = FilterGraph(make_config(processing={"audio_tracks": 2}))
    graph.add_filter("anull", 0, A)
    graph.add_filter("anull", 1, A)
    graph.add_filter("volume=0.5", 0, A)

    text = graph.cmd()[1]
    assert text == (
        "[0:a:0]anull[amid0_1];[0:a:1]anull[aout1];[amid0_1]volume=0.5[aout0]"
    )
    assert text.count("[aout0]") == 1
    assert graph.output_map == ["-map", "[aout0]", "-map", "[aout1]"]
    assert _balanced(text)


def test_reopened_track_twice_gets_fresh_links(make_config):
    graph = FilterGraph(make_config(processing={"audio_tracks": 2}))
    for filter_str, nr in [("anull", 0), ("anull", 1), ("volume=0.5", 0), ("anull", 1), ("afade=in", 0)]:
        graph.add_filter(filter_str, nr, A)

    text = graph.cmd()[1]
    assert text.count("[aout0]") == 1
    assert text.count("[aout1]") == 1
    assert text.endswith("[amid0_2]afade=in[aout0]")
    assert text.count("[amid0_1]") == 2 and text.count("[amid1_1]") == 2


def test_reopen_without_earlier_output_is_refused(make_config, log_capture):
    graph = FilterGraph(make_config(processing={"audio_tracks": 2}))
    graph.add_filter("asplit=2[aout_0_0][aout_0_1]", 0, A)
    graph.add_filter("anull", 1, A)
    graph.add_filter("volume=0.5", 0, A)

    assert graph.cmd()[1] == "[0:a:0]asplit=2[aout_0_0][aout_0_1];[0:a:1]anull[aout1]"
    errors = [r for r in log_capture.records if r.levelno == logging.ERROR]
    assert len(errors) == 1 and errors[0].kv_pairs["Track"] == 0


def test_trailing_segment_separator_gets_no_label_segment(make_config):
    graph = FilterGraph(make_config())
    graph.add_filter("null", 0, V)
    graph.add_filter("null[v];", 0, V)

    assert graph.cmd() == ["-filter_complex", "[0:v:0]null,null[v]"]
    assert graph.video_chain == "[0:v:0]null,null[v];"


def test_audio_position_moves_input_selector(make_config):
    graph = FilterGraph(make_config(), audio_position=1)
    graph.add_filter("anull", 0, A)
    assert graph.audio_chain == "[1:a:0]anull"


def test_source_filter_has_no_input_selector(make_config):
    graph = FilterGraph(make_config())
    graph.add_filter("aevalsrc=0:duration=5", 0, A)
    graph.add_filter("anull", 0, A)
    assert graph.audio_chain == "aevalsrc=0:duration=5,anull"


def test_split_output_is_not_labelled_twice(make_config):
    graph = FilterGraph(make_config())
    graph.add_filter("split=2[vout_0_0][vout_0_1]", 0, V)

    assert graph.state(V) is ChainState.CLOSED
    assert graph.cmd() == ["-filter_complex", "[0:v:0]split=2[vout_0_0][vout_0_1]"]


def test_overlay_joins_logo_chain(make_config):
    graph = FilterGraph(make_config())
    graph.add_filter("null", 0, V)
    graph.add_filter("null[v];", 0, V)
    assert graph.state(V) is ChainState.OPEN_SEGMENT

    graph.add_filter("movie=logo.png:loop=0", 0, V)
    graph.add_filter("overlay=W-w-12:12:shortest=1", 0, V)

    assert graph.video_chain == (
        "[0:v:0]null,null[v];movie=logo.png:loop=0[l];[v][l]overlay=W-w-12:12:shortest=1"
    )
    assert _balanced(graph.cmd()[1])
    assert ";;" not in graph.cmd()[1]


def test_hw_input_download_for_software_filter(make_config):
    graph = FilterGraph(make_config(advanced=CUDA_DECODER))
    assert graph.hw_context
    graph.add_filter("fps=25", 0, V)
    assert graph.video_chain == "[0:v:0]hwdownload,format=nv12,fps=25"


def test_hw_to_sw_inserts_download(make_config):
    graph = FilterGraph(make_config(advanced=CUDA_DECODER))
    graph.add_filter("scale_cuda=1024:576", 0, V)
    graph.add_filter("fps=25", 0, V)
    assert graph.video_chain == "[0:v:0]scale_cuda=1024:576,hwdownload,fps=25"


def test_sw_to_hw_inserts_upload(make_config):
    graph = FilterGraph(make_config(advanced=CUDA_DECODER))
    graph.add_filter("fps=25", 0, V)
    graph.add_filter("yadif_cuda", 0, V)
    assert graph.video_chain.endswith("fps=25,hwupload_cuda,yadif_cuda")


def test_no_redundant_bridge_between_hw_filters(make_config):
    graph = FilterGraph(make_config(advanced=CUDA_DECODER))
    graph.add_filter("scale_cuda=1024:576", 0, V)
    graph.add_filter("yadif_cuda", 0, V)
    assert graph.video_chain == "[0:v:0]scale_cuda=1024:576,yadif_cuda"


def test_output_chain_overrides_cmd(make_config):
    graph = FilterGraph(make_config())
    graph.add_filter("null", 0, V)
    graph.output_chain = ["-filter_complex", "[0:v]null[out]"]
    assert graph.cmd() == ["-filter_complex", "[0:v]null[out]"]


@pytest.mark.parametrize(
    "sequence",
    [
        [("anull", 0), ("anull", 1), ("anull", 2)],
        [("aevalsrc=0", 0), ("anull", 0), ("volume=2", 1), ("anull", 0)],
        [("asplit=2[aout_0_0][aout_0_1]", 0), ("anull", 1)],
    ],
)
def test_chains_stay_balanced(make_config, sequence):
    graph = FilterGraph(make_config(processing={"audio_tracks": 3}))
    for filter_str, nr in sequence:
        graph.add_filter(filter_str, nr, A)

    text = graph.cmd()[1]
    assert _balanced(text)
    assert all(segment for segment in text.split(";"))


def test_out_of_order_tracks_close_previous(make_config):
    graph = FilterGraph(make_config(processing={"audio_tracks": 3}))
    graph.add_filter("anull", 2, A)
    graph.add_filter("anull", 0, A)

    assert graph.cmd() == ["-filter_complex", "[0:a:2]anull[aout2];[0:a:0]anull[aout0]"]
    assert graph.map() == ["-map", "[aout2]", "-map", "[aout0]", "-map", "0:v"]
