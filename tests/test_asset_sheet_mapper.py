from __future__ import annotations

import unittest
from datetime import date, datetime

from app.mappers.asset_sheet_mapper import (
    AssetSheetMapper,
    MissingColumnsError,
    normalize_header,
    parse_date,
    parse_int,
    parse_text,
)


class TestHeaderResolution(unittest.TestCase):
    def setUp(self) -> None:
        self.mapper = AssetSheetMapper()

    def test_normalize_header_ignores_case_space_and_punctuation(self) -> None:
        self.assertEqual(normalize_header(" Asset-No. "), "assetno")
        self.assertEqual(normalize_header("资产使用年限(年)"), "资产使用年限年")
        self.assertEqual(normalize_header("U位"), "u位")

    def test_resolves_chinese_template_headers(self) -> None:
        headers = ["资产编号", "资产名称", "一级分类", "二级分类", "三级分类", "U位", "变更后U位"]

        columns = self.mapper.resolve_columns(headers)

        self.assertEqual(columns.field_to_index["asset_no"], 0)
        self.assertEqual(columns.field_to_index["category_l3"], 4)
        self.assertEqual(columns.field_to_index["u_position"], 5)
        self.assertEqual(columns.field_to_index["changed_u_position"], 6)

    def test_resolves_english_headers_and_ignores_unknown(self) -> None:
        headers = [
            "Asset No",
            "Asset Name",
            "Category Level 1",
            "Category Level 2",
            "Category Level 3",
            "Serial Number",
            "Purchase Price",
        ]

        columns = self.mapper.resolve_columns(headers)

        self.assertEqual(columns.field_to_index["serial_no"], 5)
        self.assertEqual(columns.ignored_headers, ("Purchase Price",))

    def test_first_duplicate_header_wins(self) -> None:
        headers = ["资产编号", "资产名称", "一级分类", "二级分类", "三级分类", "资产编号"]

        columns = self.mapper.resolve_columns(headers)

        self.assertEqual(columns.field_to_index["asset_no"], 0)

    def test_missing_required_columns_are_all_reported(self) -> None:
        with self.assertRaises(MissingColumnsError) as ctx:
            self.mapper.resolve_columns(["资产编号", "一级分类", None, "备注"])

        self.assertEqual(
            ctx.exception.missing_fields,
            ("asset_name", "category_l2", "category_l3"),
        )

    def test_to_asset_row_types_each_field(self) -> None:
        headers = ["资产编号", "资产名称", "一级分类", "二级分类", "三级分类", "维保开始日期", "资产使用年限(年)", "机柜"]
        columns = self.mapper.resolve_columns(headers)

        row = self.mapper.to_asset_row(
            row_number=7,
            values=[1001, "  核心交换机 ", 2, 21, None, "2024/03/01", 3.0, 12.0],
            columns=columns,
        )

        self.assertEqual(row.row_number, 7)
        self.assertEqual(row.asset_no, "1001")
        self.assertEqual(row.asset_name, "核心交换机")
        self.assertEqual(row.category_l1, "2")
        self.assertIsNone(row.category_l3)
        self.assertEqual(row.warranty_start_date, date(2024, 3, 1))
        self.assertEqual(row.asset_life_years, 3)
        self.assertEqual(row.cabinet_no, "12")

    def test_short_row_leaves_trailing_fields_empty(self) -> None:
        headers = ["资产编号", "资产名称", "一级分类", "二级分类", "三级分类", "序列号"]
        columns = self.mapper.resolve_columns(headers)

        row = self.mapper.to_asset_row(row_number=2, values=["A-1", "Server"], columns=columns)

        self.assertEqual(row.asset_no, "A-1")
        self.assertIsNone(row.serial_no)


class TestCellParsing(unittest.TestCase):
    def test_parse_text(self) -> None:
        self.assertIsNone(parse_text("   "))
        self.assertEqual(parse_text(42.0), "42")
        self.assertEqual(parse_text(4.5), "4.5")
        self.assertEqual(parse_text(True), "TRUE")
        self.assertEqual(parse_text(date(2024, 1, 2)), "2024-01-02")

    def test_parse_date_accepts_supported_formats(self) -> None:
        expected = date(2024, 5, 6)
        for raw in ("2024-05-06", "2024/05/06", "06/05/2024", "2024年05月06日"):
            with self.subTest(raw=raw):
                self.assertEqual(parse_date(raw), expected)

    def test_parse_date_handles_datetimes_serials_and_garbage(self) -> None:
        self.assertEqual(parse_date(datetime(2023, 12, 31, 8, 30)), date(2023, 12, 31))
        self.assertEqual(parse_date(45292), date(2024, 1, 1))
        self.assertIsNone(parse_date("not a date"))
        self.assertIsNone(parse_date(True))

    def test_parse_int(self) -> None:
        self.assertEqual(parse_int(5), 5)
        self.assertEqual(parse_int(5.0), 5)
        self.assertEqual(parse_int(" 8 "), 8)
        self.assertIsNone(parse_int(2.5))
        self.assertIsNone(parse_int("five"))


if __name__ == "__main__":
    unittest.main()
