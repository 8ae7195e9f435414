# docextract

`docextract` turns positioned glyphs into structured text. You pass in glyphs, images and ruled lines page by page, in the form a PDF interpreter produces them. It finds tables from the ruled lines and joins the glyphs into spans, lines and paragraphs. It writes the result as plain text or as JSON, and can also write each table it finds to its own CSV file.

## Installation

```
pip install docextract
```

To run the tests:

```
pip install "docextract[test]"
pytest
```

## Feeding content

```python
import io

from docextract.extractor import Extractor, OutputFormat

extractor = Extractor(OutputFormat.TEXT, 0.5, None)

extractor.page_begin(0, 0, 612, 792)
extractor.span_begin("ABCDEF+Helvetica", False, False, 0,
                     12, 0, 0, 12,
                     0, -0.2, 1, 0.9)
for i, ch in enumerate("Hello"):
    x = 72 + i * 6
    extractor.add_char(x, 100, ord(ch), 0.5, x, 100, x + 6, 112)
extractor.span_end()
extractor.page_end()

extractor.process()

out = io.StringIO()
extractor.write(out)
print(out.getvalue())
```

`Extractor(format, space_guess, tables_csv_format)` uses these defaults: `OutputFormat.TEXT`, `0.5` and `None`. The format may also be given as the string `"text"` or `"json"`. Any other format raises `ValueError`.

A subset prefix in a font name, such as `ABCDEF+`, is removed. `add_char` decides how each character relates to the previous one:

- If a character continues the previous span, it is joined onto it.
- If it lies too far along or across the baseline, the span is split.
- A space whose room is not used is dropped.
- If the gap is wide enough, a missing space is inserted.

`space_guess` sets how wide a space is assumed to be relative to the neighbouring glyphs. `span_end` discards a span that received no characters. `add_image` places an image on the current page. Images are named `image<n>.<type>` and numbered from 11.

Calls that need a page, such as `span_begin` or `add_char`, raise `RuntimeError` if no page has been started.

### Ruled lines and tables

Table borders can be given in either of two forms:

- thin filled rectangles, with `fill_begin`, `moveto`, `lineto`, `closepath` and `fill_end`;
- stroked segments, with `stroke_begin`, `moveto`, `lineto`, `closepath` and `stroke_end`.

Both `fill_begin` and `stroke_begin` take a `docextract.geometry.Matrix`. Opening a second path before the first is ended raises `RuntimeError`. So does a path call when no path is open.

Lines can also be passed directly with `add_path4` and `add_line`:

- `add_path4` keeps only axis-aligned rectangles at least five times longer than they are thick.
- `add_line` keeps only horizontal and vertical segments.

When `process()` runs, each subpage is searched for tables. Text whose origin falls inside a table cell is moved into that cell and joined there, so it does not also appear among the page's paragraphs. White horizontal lines (colour `1`) do not separate one table from the next.

To write each table found to its own CSV file, pass a `%`-style path format such as `"table-%i.csv"` as `tables_csv_format`. Each file has one line per row and one quoted field per cell.

### Structure

`begin_struct` and `end_struct` open and close structure elements. The element types are members of `docextract.document.StructType`. Spans added while an element is open belong to the innermost open element. A span never continues across two elements.

`classify_region(x0, y0, x1, y1)` works on the spans of the current page. It assigns the current element to every span whose box lies more than 80% inside the rectangle.

## Processing and output

`process()` does the following, in order:

1. Joins the pages gathered so far.
2. Renders them in the chosen format.
3. Keeps the rendered text and returns it.
4. Collects the pages' images into `extractor.images`.
5. Writes table CSV files if requested.
6. Clears the pages, so the next pages can be fed in.

The two output formats:

- `OutputFormat.TEXT`: each paragraph's characters as written, followed by a newline. Paragraphs inside rotated blocks are included.
- `OutputFormat.JSON`: `write` produces an object whose `elements` array holds one object per run of text and one per image.
  - A run of text has `Bounds`, `Text`, `Font` (`family_name`) and `TextSize`.
  - Characters in `Text` are XML-escaped, so `&` is written as `&amp;`.
  - An image has `Bounds` and `"Image": true`.
  - Either kind carries a `Path` such as `DOCUMENT\P[3]` when it belongs to a structure element.

`write(stream)` writes the complete output. `write_content(stream)` writes only the rendered content of each `process()` call, without the JSON wrapper. Both accept text streams and binary streams; binary streams receive UTF-8.

## Lower-level pieces

Each stage can also be used on its own:

- `docextract.geometry`: `Point`, `Rect`, `Matrix4` and `Matrix`, plus `rect_empty()` and `rect_infinite()`.
- `docextract.document`: the content model. It provides `Char`, `Span`, `Line`, `Paragraph`, `Block`, `Image`, `Cell`, `Table`, `TableLine`, `Structure`, `Subpage`, `Page` and `Document`. `Block.pre_rotation_bounds` gives the unrotated box of a rotated block.
- `docextract.lines.make_lines`: joins spans into lines.
- `docextract.paragraphs.make_paragraphs`: joins lines into paragraphs and sorts them.
- `docextract.analysis`:
  - `analyse_paragraphs` sets `ParagraphFlag` alignment flags.
  - `spot_rotated_blocks` gathers runs of rotated paragraphs into blocks.
  - `join_content` runs the whole joining stage.
- `docextract.tables`: `find_tables`, `find_table`, `spans_within_rect` and `overlap`.
- `docextract.extractor.join_document`: finds tables and joins content on every subpage of a `Document`.
- `docextract.text_output`: `paragraph_to_text`, `content_to_text`, `document_to_text` and `table_to_csv`.
- `docextract.json_output`: `document_to_json`, `image_rect` and `structure_path`.

## What it does not do

- It does not read PDF or any other input file. Content must be passed in through the `Extractor` calls.
- It has no command-line program.
- It writes only plain text, JSON and per-table CSV. It does not write word-processor or HTML documents.