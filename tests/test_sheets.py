from gagyebu.adapters import sheets


def test_quote_sheet_title():
    assert sheets.quote_sheet_title("9월") == "'9월'"
    assert sheets.quote_sheet_title("it's") == "'it''s'"


def test_build_range():
    assert sheets.build_range("설정", "D:F") == "'설정'!D:F"
    assert sheets.build_range("설정", " ") == "'설정'"
    assert sheets.build_range("설정", None) == "'설정'"


def test_col_letter_and_index():
    assert [sheets._col_letter(n) for n in (1, 26, 27, 52)] == ["A", "Z", "AA", "AZ"]
    assert sheets._col_index("AA") == 27


def test_append_row_uses_user_entered_insert(fake_service):
    update = sheets.append_row("sheet-1", "9월", ("지출", "식비", 1000))
    assert update["updatedRows"] == 1
    assert fake_service.calls[0] == ("append", "'9월'", [["지출", "식비", 1000]])


def test_overwrite_values_computes_block(fake_service):
    sheets.overwrite_values("sheet-1", "설정", "D1", [["a", "b", "c"], ["d"]], clear_range="D:F")
    assert fake_service.calls == [
        ("clear", "'설정'!D:F"),
        ("update", "'설정'!D1:F2", [["a", "b", "c"], ["d"]]),
    ]


def test_overwrite_values_empty_only_clears(fake_service):
    sheets.overwrite_values("sheet-1", "설정", "A1", [], clear_range="A:A")
    assert fake_service.calls == [("clear", "'설정'!A:A")]
