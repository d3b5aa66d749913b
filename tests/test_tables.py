# tests/test_tables.py
import threading

import pytest

from retention.data_dictionary import TABLE_FILES
from retention.errors import MissingTableError, TableParseError
from retention.tables import TableRepository, parse_table


class TestParseTable:
    def test_header_and_type_inference(self, sources):
        df = parse_table("students", sources["students"])
        assert list(df.columns)[:3] == ["student_id", "name", "gender"]
        assert df["student_id"].tolist() == [1, 2, 3, 4, 5]
        assert df["cumulative_gpa"].dtype.kind == "f"
        assert df["name"].iloc[0] == "Ana Lopez"

    def test_blank_lines_are_skipped(self, sources):
        # the fixture has a blank line between students 3 and 4
        assert len(parse_table("students", sources["students"])) == 5

    def test_dates_stay_strings(self, sources):
        df = parse_table("advising_notes", sources["advising_notes"])
        assert df["note_date"].iloc[0] == "2024-09-10"

    def test_row_with_too_many_fields(self):
        text = "course_id,dept,level,title\n10,BIO,230,Cell Biology,extra,fields\n"
        with pytest.raises(TableParseError):
            parse_table("courses", text)

    def test_every_row_one_field_too_long(self):
        """A consistent extra field must not be folded into the index"""
        text = (
            "course_id,dept,level,title\n"
            "10,BIO,230,Cell Biology,X\n"
            "20,HIST,100,World History,Y\n"
        )
        with pytest.raises(TableParseError, match="5 fields"):
            parse_table("courses", text)

    def test_row_with_too_few_fields(self):
        text = "course_id,dept,level,title\n10,BIO\n"
        with pytest.raises(TableParseError, match="line 2"):
            parse_table("courses", text)

    def test_short_row_after_blank_line(self):
        text = "course_id,dept,level,title\n10,BIO,230,Cell Biology\n\n20,HIST,100\n"
        with pytest.raises(TableParseError):
            parse_table("courses", text)

    def test_na_like_strings_stay_text(self):
        text = "course_id,dept,level,title\n10,NA,230,None\n20,null,100,N/A\n"
        df = parse_table("courses", text)
        assert df["dept"].tolist() == ["NA", "null"]
        assert df["title"].tolist() == ["None", "N/A"]
        assert df["level"].tolist() == [230, 100]

    def test_empty_field_is_missing(self):
        text = "course_id,dept,level,title\n10,BIO,,Cell Biology\n"
        df = parse_table("courses", text)
        assert df["level"].isna().all()

    def test_columns_are_not_shifted(self, sources):
        df = parse_table("courses", sources["courses"])
        assert df["course_id"].tolist() == [10, 20, 30]
        assert df["title"].tolist() == ["Cell Biology", "World History", "Algorithms"]
        assert list(df.index) == [0, 1, 2]

    def test_missing_required_column(self):
        text = "course_id,dept,title\n10,BIO,Cell Biology\n"
        with pytest.raises(TableParseError, match="level"):
            parse_table("courses", text)

    def test_empty_source(self):
        with pytest.raises(TableParseError):
            parse_table("courses", "   \n")

    def test_extra_columns_are_kept(self):
        text = "course_id,dept,level,title,room\n10,BIO,230,Cell Biology,B12\n"
        df = parse_table("courses", text)
        assert df["room"].iloc[0] == "B12"

    def test_unknown_table(self):
        with pytest.raises(MissingTableError):
            parse_table("dormitories", "a,b\n1,2\n")


class TestTableRepository:
    def test_same_frame_on_every_call(self, repository):
        first = repository.students()
        assert repository.students() is first
        assert repository.table("students") is first

    def test_lazy_loading(self, repository):
        assert not repository.is_loaded("courses")
        repository.courses()
        assert repository.is_loaded("courses")
        assert repository.loaded_tables() == ["courses"]

    def test_preload_loads_everything(self, repository):
        repository.preload()
        assert repository.loaded_tables() == list(TABLE_FILES)

    def test_missing_source(self, sources):
        del sources["financial_aid"]
        repository = TableRepository(sources)
        assert len(repository.students()) == 5
        with pytest.raises(MissingTableError):
            repository.financial_aid()

    def test_parse_failure_is_not_cached(self, sources):
        sources["courses"] = "course_id,dept\n1,BIO\n"
        repository = TableRepository(sources)
        with pytest.raises(TableParseError):
            repository.courses()
        assert not repository.is_loaded("courses")
        with pytest.raises(TableParseError):
            repository.courses()

    def test_concurrent_first_loads_converge(self, repository):
        results = []

        def load():
            results.append(repository.attendance())

        threads = [threading.Thread(target=load) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 8
        assert all(frame is results[0] for frame in results)

    def test_from_directory(self, data_dir):
        repository = TableRepository.from_directory(data_dir)
        assert len(repository.courses()) == 3

    def test_from_directory_missing_file(self, data_dir):
        (data_dir / TABLE_FILES["term_gpas"]).unlink()
        with pytest.raises(MissingTableError):
            TableRepository.from_directory(data_dir)
