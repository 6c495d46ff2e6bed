import pytest

from stacktally import CallTreeResult
from stacktally import RootNotFoundError
from stacktally import ShapeOptions
from stacktally import build_call_tree
from stacktally import find_root
from stacktally import shape_tree
from stacktally._shaping import other_bucket_name
from stacktally._shaping import partition_children
from stacktally._shaping import visible_children
from tests.utils import child_names
from tests.utils import make_runtime_sample
from tests.utils import make_sample
from tests.utils import walk


@pytest.fixture
def result():
    return CallTreeResult.from_samples(
        [
            make_sample("A;B;C", 10),
            make_sample("A;B;D", 5),
            make_sample("A;E", 1),
        ]
    )


def shape(samples, **kwargs):
    return shape_tree(CallTreeResult.from_samples(samples), ShapeOptions(**kwargs))


class TestWidthAndCutoff:
    def test_width_one_folds_everything_but_the_heaviest_child(self, result):
        # GIVEN/WHEN
        shaped = shape_tree(result, ShapeOptions(max_width=1))

        # THEN
        (a,) = shaped.root.children
        assert child_names(a) == ["B", "other (1 siblings)"]
        b, other = a.children
        assert other.inclusive_weight == 1
        assert other.collapsed == 1
        assert child_names(b) == ["C", "other (1 siblings)"]
        assert b.children[1].inclusive_weight == 5
        assert b.children[0].inclusive_weight == 10

    def test_default_width_keeps_all_children(self, result):
        shaped = shape_tree(result)
        (a,) = shaped.root.children
        assert child_names(a) == ["B", "E"]
        assert child_names(a.children[0]) == ["C", "D"]

    def test_siblings_below_the_cutoff_are_folded(self):
        # GIVEN/WHEN
        shaped = shape([make_sample("Big", 100), make_sample("Small", 4)])

        # THEN
        assert child_names(shaped.root) == ["Big", "other (1 siblings)"]
        assert shaped.root.children[1].inclusive_weight == 4

    def test_sibling_exactly_at_the_cutoff_is_kept(self):
        shaped = shape([make_sample("Big", 100), make_sample("Edge", 5)])
        assert child_names(shaped.root) == ["Big", "Edge"]

    def test_zero_cutoff_disables_the_cutoff(self):
        shaped = shape(
            [make_sample("Big", 100), make_sample("Small", 4)],
            sibling_cutoff_percent=0,
        )
        assert child_names(shaped.root) == ["Big", "Small"]

    def test_cutoff_and_width_share_one_other_bucket(self):
        # GIVEN
        samples = [
            make_sample("c100", 100),
            make_sample("c50", 50),
            make_sample("c3", 3),
            make_sample("c2", 2),
            make_sample("c1", 1),
        ]

        # WHEN
        shaped = shape(samples, max_width=4, sibling_cutoff_percent=5)

        # THEN
        assert child_names(shaped.root) == ["c100", "c50", "other (3 siblings)"]
        other = shaped.root.children[-1]
        assert other.inclusive_weight == 6
        assert other.collapsed == 3
        assert other.is_other
        assert other.children == ()

    def test_other_bucket_sums_self_weight_and_calls(self):
        shaped = shape(
            [
                make_sample("main", 10),
                make_sample("x;y", 2, count=2),
                make_sample("z", 1, count=3),
            ],
            max_width=1,
        )
        other = shaped.root.children[-1]
        assert other.inclusive_weight == 3
        assert other.self_weight == 1
        assert other.calls == 5

    def test_no_node_exceeds_the_width_bound(self):
        # GIVEN
        samples = [
            make_sample(f"main;f{i};g{j}", i + j + 1)
            for i in range(8)
            for j in range(8)
        ]

        # WHEN
        shaped = shape(samples, max_width=3, sibling_cutoff_percent=0)

        # THEN
        for _, node, _ in walk(shaped.root):
            assert len(node.children) <= 4
            real = [child for child in node.children if not child.is_other]
            assert len(real) <= 3
            assert all(not child.is_other for child in node.children[:-1])

    def test_children_weights_add_up_to_the_parent(self, result):
        shaped = shape_tree(result, ShapeOptions(max_width=1))
        for _, node, _ in walk(shaped.root):
            if node.children:
                total = sum(child.inclusive_weight for child in node.children)
                assert total + node.self_weight == pytest.approx(node.inclusive_weight)

    def test_children_are_ordered_heaviest_first(self, result):
        shaped = shape_tree(result)
        for _, node, _ in walk(shaped.root):
            weights = [child.inclusive_weight for child in node.children]
            assert weights == sorted(weights, reverse=True)


class TestDepth:
    def test_nodes_deeper_than_max_depth_are_dropped(self):
        # GIVEN/WHEN
        shaped = shape([make_sample("a;b;c;d;e", 1)], max_depth=2)

        # THEN
        assert max(depth for depth, _, _ in walk(shaped.root)) == 2
        (a,) = shaped.root.children
        (b,) = a.children
        assert b.children == ()
        assert b.inclusive_weight == 1

    def test_depth_is_counted_from_the_display_root(self):
        shaped = shape([make_sample("a;b;c;d;e", 1)], max_depth=2, root_match="b")
        assert [node.name for _, node, _ in walk(shaped.root)] == ["b", "c", "d"]

    def test_walk_reports_display_depth(self, result):
        shaped = shape_tree(result)
        assert [(depth, node.name) for depth, node in shaped.walk()] == [
            (0, "<root>"),
            (1, "A"),
            (2, "B"),
            (3, "C"),
            (3, "D"),
            (2, "E"),
        ]


class TestRooting:
    def test_root_match_moves_the_display_root(self, result):
        # GIVEN/WHEN
        shaped = shape_tree(result, ShapeOptions(root_match="b"))

        # THEN
        assert shaped.is_rooted
        assert shaped.root.name == "B"
        assert shaped.baseline == 15
        assert child_names(shaped.root) == ["C", "D"]
        assert shaped.percentage(shaped.root) == 100
        assert shaped.percentage(shaped.root.children[0]) == pytest.approx(200 / 3)
        assert shaped.total_weight == 16

    def test_unrooted_tree_uses_the_synthetic_root(self, result):
        shaped = shape_tree(result)
        assert not shaped.is_rooted
        assert shaped.root.name == "<root>"
        assert shaped.baseline == 16

    def test_no_match_raises(self, result):
        with pytest.raises(RootNotFoundError, match="nowhere") as exc_info:
            shape_tree(result, ShapeOptions(root_match="nowhere"))
        assert exc_info.value.root_match == "nowhere"

    def test_rooting_twice_gives_the_same_tree(self, result):
        options = ShapeOptions(root_match="B")
        assert shape_tree(result, options) == shape_tree(result, options)

    @pytest.mark.parametrize(
        "root_mode, expected_weight, expected_depth",
        [
            pytest.param("first", 1, 3, id="first"),
            pytest.param("shallowest", 2, 1, id="shallowest"),
            pytest.param("hottest", 10, 2, id="hottest"),
        ],
    )
    def test_root_modes(self, root_mode, expected_weight, expected_depth):
        # GIVEN
        tree = build_call_tree(
            [
                make_sample("main;run;work", 1),
                make_sample("work", 2),
                make_sample("main;work", 10),
            ]
        )

        # WHEN
        node = find_root(tree, "work", root_mode=root_mode)

        # THEN
        assert node.inclusive_weight == expected_weight
        assert node.depth == expected_depth

    def test_runtime_matches_are_avoided(self):
        # GIVEN
        tree = build_call_tree([make_sample("Thread (1);Worker.ThreadMain", 1)])

        # WHEN/THEN
        assert find_root(tree, "thread").name == "Worker.ThreadMain"
        assert find_root(tree, "thread", include_runtime=True).name == "Thread (1)"

    def test_runtime_match_is_used_when_nothing_else_matches(self):
        tree = build_call_tree([make_sample("Thread (1);Worker.ThreadMain", 1)])
        assert find_root(tree, "thread (").name == "Thread (1)"

    def test_synthetic_root_never_matches(self):
        tree = build_call_tree([make_sample("main", 1)])
        with pytest.raises(RootNotFoundError):
            find_root(tree, "root")

    def test_display_names_are_matched(self):
        # GIVEN
        tree = build_call_tree(
            [make_sample("Program.Main;Program+<RunAsync>d__2.MoveNext;Work", 1)]
        )

        # WHEN
        node = find_root(tree, "StateMachine.RunAsync")

        # THEN
        assert node.name == "Program+<RunAsync>d__2.MoveNext"
        assert find_root(tree, "<runasync>d__2").index == node.index


class TestSelfTimeMode:
    @pytest.fixture
    def samples(self):
        return [
            make_sample("A;B", 3),
            make_sample("A;C", 1),
            make_sample("A;C;D", 10),
        ]

    def test_children_are_ranked_by_self_weight(self, samples):
        inclusive = shape(samples)
        by_self = shape(samples, self_time_mode=True)
        assert child_names(inclusive.root.children[0]) == ["C", "B"]
        assert child_names(by_self.root.children[0]) == ["B", "C"]

    def test_width_limit_uses_self_weight(self, samples):
        # GIVEN/WHEN
        shaped = shape(samples, self_time_mode=True, max_width=1)

        # THEN
        (a,) = shaped.root.children
        assert child_names(a) == ["B", "other (1 siblings)"]
        other = a.children[1]
        assert other.self_weight == 1
        assert other.inclusive_weight == 11

    def test_percentages_use_self_weight(self, samples):
        shaped = shape(samples, self_time_mode=True)
        (a,) = shaped.root.children
        assert shaped.baseline == 14
        assert shaped.percentage(a) == 0
        assert shaped.percentage(a.children[0]) == pytest.approx(300 / 14)


class TestRuntimeFrames:
    @pytest.fixture
    def samples(self):
        return [
            make_runtime_sample("Main;GC.Collect;Finalize", 4, runtime=("GC.Collect",)),
            make_runtime_sample("Main;Work", 6),
        ]

    def test_runtime_frames_are_spliced_out(self, samples):
        shaped = shape(samples)
        (main,) = shaped.root.children
        assert child_names(main) == ["Work", "Finalize"]
        assert main.children[1].inclusive_weight == 4

    def test_runtime_frames_are_shown_on_request(self, samples):
        shaped = shape(samples, include_runtime_frames=True)
        (main,) = shaped.root.children
        assert child_names(main) == ["Work", "GC.Collect"]
        assert child_names(main.children[1]) == ["Finalize"]

    def test_visible_children_keep_first_seen_order(self, samples):
        # GIVEN
        tree = CallTreeResult.from_samples(samples).tree
        (main,) = tree.children(0)

        # WHEN
        hidden = visible_children(tree, main.index)
        shown = visible_children(tree, main.index, include_runtime=True)

        # THEN
        assert [node.name for node in hidden] == ["Finalize", "Work"]
        assert [node.name for node in shown] == ["GC.Collect", "Work"]


def test_partition_children():
    # GIVEN
    tree = build_call_tree(
        [make_sample("x", 1), make_sample("y", 40), make_sample("z", 40)]
    )
    children = [tree[index] for index in tree.root.children]

    # WHEN
    kept, folded = partition_children(
        children, ShapeOptions(max_width=1, sibling_cutoff_percent=5)
    )

    # THEN
    assert [node.name for node in kept] == ["y"]
    assert [node.name for node in folded] == ["z", "x"]


def test_partition_children_of_a_leaf():
    assert partition_children([], ShapeOptions()) == ([], [])


def test_other_bucket_name():
    assert other_bucket_name(3) == "other (3 siblings)"


def test_shaping_is_deterministic(result):
    options = ShapeOptions(max_width=2, max_depth=3)
    assert shape_tree(result, options) == shape_tree(result, options)


def test_shaping_a_bare_call_tree(result):
    shaped = shape_tree(result.tree, ShapeOptions(max_width=1))
    assert shaped.total_weight == 16
    assert child_names(shaped.root.children[0]) == ["B", "other (1 siblings)"]


def test_shaping_an_empty_tree():
    shaped = shape_tree(CallTreeResult.from_samples([]))
    assert shaped.root.children == ()
    assert shaped.total_weight == 0
    assert shaped.percentage(shaped.root) == 0


def test_deep_trees_do_not_hit_the_recursion_limit():
    stack = ";".join(f"f{i}" for i in range(3000))
    shaped = shape([make_sample(stack, 1)], max_depth=5000)
    assert len(list(shaped.walk())) == 3001
