import unittest

from schoolhub.schemas.query import PaginationMeta
from schoolhub.services.query_params import (
    parse_filter_key,
    parse_filters,
    parse_list_request,
    parse_page,
    parse_projection,
    parse_sort,
    to_snake,
)


class FilterParsingTests(unittest.TestCase):
    def test_filter_key_grammar(self):
        self.assertEqual(parse_filter_key("status"), ("status", "eq"))
        self.assertEqual(parse_filter_key("credits[gte]"), ("credits", "gte"))
        self.assertEqual(parse_filter_key("credits%5Blt%5D"), ("credits", "lt"))
        self.assertEqual(parse_filter_key("profileData.year[in]"), ("profile_data.year", "in"))
        self.assertIsNone(parse_filter_key("credits[regex]"))
        self.assertIsNone(parse_filter_key("credits[]"))
        self.assertIsNone(parse_filter_key("credits[gte"))
        self.assertIsNone(parse_filter_key("$where"))

    def test_camel_case_fields_are_normalised(self):
        self.assertEqual(to_snake("createdAt"), "created_at")
        self.assertEqual(to_snake("profileData.enrollmentStatus"), "profile_data.enrollment_status")
        self.assertEqual(to_snake("course_code"), "course_code")

    def test_reserved_and_unknown_operators_are_dropped(self):
        clauses = parse_filters(
            [("page", "2"), ("limit", "5"), ("sort", "name"), ("fields", "name"), ("search", "x"), ("name[like]", "a")]
        )
        self.assertEqual(clauses, [])

    def test_last_scalar_value_wins_and_in_accumulates(self):
        clauses = parse_filters(
            [
                ("status", "active"),
                ("status", "deprecated"),
                ("degree_level[in]", "bachelor,master"),
                ("degree_level[in]", "doctoral"),
            ]
        )
        by_key = {(c.field, c.op): c.value for c in clauses}
        self.assertEqual(by_key[("status", "eq")], "deprecated")
        self.assertEqual(by_key[("degree_level", "in")], ["bachelor", "master", "doctoral"])

    def test_range_operators_are_kept_side_by_side(self):
        clauses = parse_filters([("grade[gte]", "3.5"), ("grade[lte]", "4.0")])
        self.assertEqual([(c.field, c.op, c.value) for c in clauses], [("grade", "gte", "3.5"), ("grade", "lte", "4.0")])


class SortAndProjectionTests(unittest.TestCase):
    def test_sort_preserves_order_and_direction(self):
        parsed = parse_sort("-createdAt, name ,")
        self.assertEqual([(s.field, s.dir) for s in parsed], [("created_at", "desc"), ("name", "asc")])
        self.assertEqual(parse_sort(None), [])

    def test_projection_inclusion_and_exclusion(self):
        self.assertEqual(parse_projection("name,code").include, ["name", "code"])
        excluded = parse_projection("-description,-createdAt")
        self.assertEqual(excluded.include, [])
        self.assertEqual(excluded.exclude, ["description", "created_at"])

    def test_mixed_projection_resolves_to_inclusion(self):
        mixed = parse_projection("name,-code")
        self.assertEqual(mixed.include, ["name"])
        self.assertEqual(mixed.exclude, [])

    def test_empty_projection(self):
        self.assertTrue(parse_projection("").is_empty)


class PaginationParsingTests(unittest.TestCase):
    def test_limit_is_clamped_and_defaulted(self):
        self.assertEqual(parse_page("1", "500").limit, 100)
        self.assertEqual(parse_page("1", "0").limit, 25)
        self.assertEqual(parse_page("1", "-3").limit, 25)
        self.assertEqual(parse_page("1", "abc").limit, 25)
        self.assertEqual(parse_page("1", None).limit, 25)

    def test_leading_integer_is_read(self):
        self.assertEqual(parse_page("1", "10abc").limit, 10)
        self.assertEqual(parse_page(" 2 ", "7.9").page, 2)
        self.assertEqual(parse_page("1", "7.9").limit, 7)
        self.assertEqual(parse_page("3rd", "x10").page, 3)
        self.assertEqual(parse_page("3rd", "x10").limit, 25)

    def test_page_defaults_to_one(self):
        self.assertEqual(parse_page("0", "10").page, 1)
        self.assertEqual(parse_page("x", "10").page, 1)
        self.assertEqual(parse_page("3", "10").skip, 20)

    def test_custom_defaults(self):
        page = parse_page(None, "70", default_limit=10, max_limit=50)
        self.assertEqual(page.limit, 50)
        self.assertEqual(parse_page(None, None, default_limit=10, max_limit=50).limit, 10)

    def test_full_request(self):
        request = parse_list_request(
            [("page", "2"), ("limit", "10"), ("sort", "-name"), ("search", "  data  "), ("status", "active")]
        )
        self.assertEqual(request.page.page, 2)
        self.assertEqual(request.page.skip, 10)
        self.assertEqual(request.search, "data")
        self.assertEqual([(s.field, s.dir) for s in request.sort], [("name", "desc")])
        self.assertEqual([(f.field, f.op, f.value) for f in request.filters], [("status", "eq", "active")])

    def test_blank_search_is_none(self):
        self.assertIsNone(parse_list_request([("search", "   ")]).search)


class PaginationMetaTests(unittest.TestCase):
    def test_middle_page(self):
        meta = PaginationMeta.compute(30, 2, 10).as_payload()
        self.assertEqual(meta, {"total": 30, "page": 2, "limit": 10, "pages": 3, "hasNext": True, "hasPrev": True})

    def test_empty_collection(self):
        meta = PaginationMeta.compute(0, 1, 25)
        self.assertEqual(meta.pages, 0)
        self.assertFalse(meta.has_next)
        self.assertFalse(meta.has_prev)

    def test_pages_round_up(self):
        for total, limit, pages in [(1, 25, 1), (25, 25, 1), (26, 25, 2), (101, 100, 2)]:
            meta = PaginationMeta.compute(total, 1, limit)
            self.assertEqual(meta.pages, pages)
            self.assertEqual(meta.has_next, 1 < pages)
