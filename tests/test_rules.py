import re

from route_oas.declarations.contract import each, either, optional, pred, required
from route_oas.rules.ast import AND, IMPLICATION, KEY, OR, PREDICATE, normalize
from route_oas.rules.constraints import ConstraintSet, extract, extract_all, intersect
from route_oas.rules.rule_index import RuleIndex


class TestNormalize:
    def test_wrapped_and_splatted_shapes_match(self):
        a = ("predicate", ("str?", []))
        b = ("predicate", ("filled?", []))
        assert normalize(("and", [a, b])) == normalize(("and", a, b))

    def test_bare_predicate(self):
        node = normalize(("size?", [3]))
        assert node.tag == PREDICATE
        assert node.name == "size?"
        assert node.args == (3,)

    def test_key_node(self):
        node = normalize(("key", ("age", ("predicate", ("int?", [])))))
        assert node.tag == KEY
        assert node.name == "age"
        assert node.children[0].name == "int?"

    def test_set_and_rule_behave_like_and(self):
        assert normalize(("set", [("predicate", ("str?", []))])).tag == AND
        assert normalize(("rule", [("predicate", ("str?", []))])).tag == AND

    def test_unknown_tag_becomes_conjunction(self):
        node = normalize(("whatever", [("predicate", ("str?", []))]))
        assert node.tag == AND
        assert node.children[0].name == "str?"

    def test_non_ast_values_are_dropped(self):
        assert normalize(None) is None
        assert normalize(42) is None
        node = normalize(("and", [None, 5, ("predicate", ("str?", []))]))
        assert len(node.children) == 1

    def test_implication(self):
        node = normalize(optional("age", pred("int?")))
        assert node.tag == IMPLICATION
        condition, consequent = node.children
        assert condition.name == "key?"
        assert consequent.tag == KEY


class TestPredicates:
    def test_size_range_is_exclusive_of_stop(self):
        c = extract(pred("size?", range(1, 51)))
        assert c.min_size == 1
        assert c.max_size == 50

    def test_size_pair(self):
        c = extract(pred("size?", ("size", (2, 8))))
        assert (c.min_size, c.max_size) == (2, 8)

    def test_size_two_numbers(self):
        c = extract(pred("size?", 3, 9))
        assert (c.min_size, c.max_size) == (3, 9)

    def test_range_tuple_is_inclusive(self):
        c = extract(pred("range?", (1, 10)))
        assert (c.minimum, c.maximum) == (1, 10)
        assert not c.exclusive_maximum

    def test_comparisons(self):
        c = extract(("and", [pred("gt?", 0), pred("lteq?", 100)]))
        assert c.minimum == 0
        assert c.exclusive_minimum is True
        assert c.maximum == 100
        assert not c.exclusive_maximum

    def test_num_pair_argument(self):
        c = extract(pred("gteq?", ("num", 5)))
        assert c.minimum == 5

    def test_input_pairs_are_ignored(self):
        c = extract(pred("gteq?", ("input", 99), 5))
        assert c.minimum == 5

    def test_bool_is_not_numeric(self):
        c = extract(pred("min_size?", True))
        assert c.min_size is None

    def test_included_in(self):
        c = extract(pred("included_in?", ["a", "b"]))
        assert c.enum == ["a", "b"]

    def test_excluded_from(self):
        c = extract(pred("excluded_from?", ["root"]))
        assert c.excluded_values == ["root"]

    def test_eql_with_named_pair(self):
        c = extract(pred("eql?", ("value", "fixed")))
        assert c.enum == ["fixed"]

    def test_true_and_false(self):
        assert extract(pred("true?")).enum == [True]
        assert extract(pred("false?")).enum == [False]

    def test_format_compiled_regex(self):
        c = extract(pred("format?", re.compile(r"^\d+$")))
        assert c.pattern == r"^\d+$"

    def test_string_formats(self):
        assert extract(pred("uuid?")).format == "uuid"
        assert extract(pred("email?")).format == "email"
        assert extract(pred("url?")).format == "uri"
        assert extract(pred("date_time?")).format == "date-time"

    def test_nullable_and_filled(self):
        assert extract(pred("nil?")).nullable is True
        assert extract(("maybe", [])).nullable is True
        assert extract(pred("filled?")).nullable is False

    def test_empty(self):
        c = extract(pred("empty?"))
        assert (c.min_size, c.max_size) == (0, 0)

    def test_multiple_of(self):
        assert extract(pred("multiple_of?", 5)).extensions["multipleOf"] == 5

    def test_parity(self):
        assert extract(pred("odd?")).parity == "odd"

    def test_type_checks_have_no_effect(self):
        c = extract(("and", [pred("str?"), pred("int?")]))
        assert c == ConstraintSet()

    def test_unknown_predicate_is_recorded(self):
        c = extract(pred("palindrome?"))
        assert c.unhandled_predicates == ["palindrome?"]
        assert c.visible_unhandled() == ["palindrome?"]


class TestConstraintSetMerge:
    def test_first_value_wins(self):
        a = ConstraintSet(minimum=1)
        a.merge(ConstraintSet(minimum=5, maximum=9))
        assert (a.minimum, a.maximum) == (1, 9)

    def test_required_is_overwritten(self):
        a = ConstraintSet(required=True)
        a.merge(ConstraintSet(required=False))
        assert a.required is False
        a.merge(ConstraintSet())
        assert a.required is False

    def test_unhandled_union_keeps_order(self):
        a = ConstraintSet(unhandled_predicates=["x?", "y?"])
        a.merge(ConstraintSet(unhandled_predicates=["y?", "z?"]))
        assert a.unhandled_predicates == ["x?", "y?", "z?"]

    def test_merge_is_idempotent(self):
        other = ConstraintSet(minimum=2, enum=[1, 2], unhandled_predicates=["x?"])
        a = ConstraintSet().merge(other)
        snapshot = a.model_copy(deep=True)
        a.merge(other)
        assert a == snapshot


class TestOrIntersection:
    def test_ranges_intersect(self):
        c = extract(either(pred("range?", (1, 10)), pred("range?", (5, 20))))
        assert c.minimum == 5
        assert c.maximum == 10

    def test_bound_missing_in_one_branch_is_dropped(self):
        c = extract(either(pred("gteq?", 1), pred("str?")))
        assert c.minimum is None

    def test_enums_intersect_in_first_branch_order(self):
        c = extract(either(pred("included_in?", ["c", "b", "a"]), pred("included_in?", ["a", "c"])))
        assert c.enum == ["c", "a"]

    def test_or_result_merges_into_accumulator(self):
        c = extract(("and", [pred("max_size?", 3), either(pred("min_size?", 1), pred("min_size?", 2))]))
        assert c.min_size == 2
        assert c.max_size == 3

    def test_enum_in_one_branch_is_dropped(self):
        c = extract(either(pred("included_in?", ["a", "b"]), pred("str?")))
        assert c.enum is None

    def test_pattern_and_format_must_match_in_every_branch(self):
        c = extract(either(pred("format?", "^a$"), pred("uuid?")))
        assert c.pattern is None
        assert c.format is None
        c = extract(either(pred("uuid?"), pred("uuid?")))
        assert c.format == "uuid"

    def test_exclusive_flag_follows_the_winning_bound(self):
        c = extract(either(pred("gt?", 1), pred("gteq?", 5)))
        assert c.minimum == 5
        assert not c.exclusive_minimum

    def test_tied_bound_is_exclusive_only_if_all_branches_are(self):
        assert not extract(either(pred("gt?", 3), pred("gteq?", 3))).exclusive_minimum
        assert extract(either(pred("gt?", 3), pred("gt?", 3))).exclusive_minimum is True

    def test_unhandled_predicates_from_every_branch_are_kept(self):
        c = extract(either(pred("str?"), pred("weird?")))
        assert c.unhandled_predicates == ["weird?"]

    def test_branches_are_not_mutated(self):
        first = extract(pred("included_in?", ["a", "b"]))
        second = extract(pred("included_in?", ["b"]))
        result = intersect([first, second])
        assert result.enum == ["b"]
        assert first.enum == ["a", "b"]


class TestNegation:
    def test_not_nil_means_not_nullable(self):
        assert extract(("not", pred("nil?"))).nullable is False

    def test_not_included_in_becomes_excluded_values(self):
        c = extract(("not", pred("included_in?", ["x", "y"])))
        assert c.enum is None
        assert c.excluded_values == ["x", "y"]

    def test_not_excluded_from_adds_nothing(self):
        c = extract(("not", pred("excluded_from?", ["x"])))
        assert c.excluded_values is None
        assert c.enum is None

    def test_other_negations_are_recorded(self):
        c = extract(("and", [pred("str?"), ("not", pred("gt?", 5))]))
        assert c.minimum is None
        assert c.unhandled_predicates == ["not(gt?)"]


class TestImplication:
    def test_condition_does_not_leak(self):
        c = extract(("implication", [pred("gteq?", 100), pred("lteq?", 5)]))
        assert c.minimum is None
        assert c.maximum == 5

    def test_implication_never_sets_required(self):
        c = extract(optional("age", pred("int?")))
        assert c.required is None

    def test_required_key(self):
        c = extract(required("age", pred("int?")))
        assert c.required is True


class TestExtractAll:
    def test_rules_and_type_rules_merge(self):
        from route_oas.declarations.contract import String

        result = extract_all(
            {"name": pred("min_size?", 2)},
            {"name": String.with_rules(pred("max_size?", 9))},
        )
        assert result["name"].min_size == 2
        assert result["name"].max_size == 9


class TestRuleIndex:
    def test_constraints_by_path(self):
        constraints, required_by_path = RuleIndex.build(
            {"name": required("name", pred("str?"), pred("size?", range(1, 51)))}
        )
        assert constraints["name"].min_size == 1
        assert constraints["name"].max_size == 50
        assert constraints["name"].required is None
        assert required_by_path[""] == ["name"]

    def test_nested_keys_and_each(self):
        rule = required(
            "address",
            required("street", pred("min_size?", 1)),
        )
        tags = required("tags", pred("max_size?", 3), each(pred("min_size?", 2)))
        constraints, required_by_path = RuleIndex.build({"address": rule, "tags": tags})
        assert constraints["address/street"].min_size == 1
        assert "min_size" not in constraints["address"].model_dump(exclude_none=True)
        assert constraints["tags"].max_size == 3
        assert constraints["tags/[]"].min_size == 2
        assert required_by_path["address"] == ["street"]

    def test_key_inside_condition_is_not_required(self):
        _, required_by_path = RuleIndex.build({"age": optional("age", pred("int?"))})
        assert "age" not in required_by_path.get("", [])

    def test_rule_without_key_wrapper_attaches_to_field(self):
        constraints, _ = RuleIndex.build({"score": pred("gteq?", 3)})
        assert constraints["score"].minimum == 3
