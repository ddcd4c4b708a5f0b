"""Tests for embedded image extraction and vision descriptions."""

import base64
import io

from PIL import Image

from beacon.services import pdf_images
from beacon.services.pdf_images import describe_images, extract_images


def _decode(data_uri: str) -> Image.Image:
    return Image.open(io.BytesIO(base64.b64decode(data_uri.partition(",")[2])))


class TestExtractImages:
    def test_png_is_reencoded(self, make_pdf):
        images = extract_images(make_pdf([["Chart page"]], png_images=[(64, 48)]))

        assert len(images) == 1
        image = images[0]
        assert image.page == 1
        assert (image.width, image.height) == (64, 48)
        assert image.mime_type == "image/png"
        assert _decode(image.data).size == (64, 48)

    def test_jpeg_passthrough(self, make_pdf):
        images = extract_images(make_pdf([["Photo page"]], jpeg_images=[(80, 60)]))

        assert len(images) == 1
        assert images[0].data.startswith("data:image/jpeg;base64,/9j/")

    def test_tiny_images_skipped(self, make_pdf):
        assert extract_images(make_pdf([["Icons"]], png_images=[(10, 10)])) == []

    def test_cap(self, make_pdf):
        pdf = make_pdf([["Gallery"]], png_images=[(40, 40)] * 4)
        assert len(extract_images(pdf, max_images=2)) == 2

    def test_no_images(self, report_pdf):
        assert extract_images(report_pdf) == []

    def test_unreadable_pdf_is_empty(self):
        assert extract_images(b"%PDF-1.7 garbage") == []

    def test_broken_image_does_not_stop_the_rest(self, make_pdf, monkeypatch):
        real_decode = pdf_images.decode_image
        calls = []

        def decode_first_fails(xobj, page):
            calls.append(page)
            if len(calls) == 1:
                raise ValueError("unsupported /BitsPerComponent 3")
            return real_decode(xobj, page)

        monkeypatch.setattr(pdf_images, "decode_image", decode_first_fails)
        images = extract_images(make_pdf([["Charts"]], png_images=[(64, 48), (50, 50)]))

        assert len(calls) == 2
        assert len(images) == 1
        assert images[0].page == 1


class TestDescribeImages:
    async def test_descriptions_attached(self, make_pdf, fake_llm):
        images = extract_images(make_pdf([["Charts"]], png_images=[(64, 48), (50, 50)]))
        client = fake_llm(descriptions={images[0].data: "A red bar chart"})

        described = await describe_images(images, client.describe_image, delay=0)

        assert [d.description for d in described] == ["A red bar chart", "A chart"]
        assert client.described == [i.data for i in images]

    async def test_failures_give_empty_description(self, png_data_uri):
        from beacon.schemas.slides import ExtractedImage

        calls = []

        async def flaky(data_uri, prompt):
            calls.append(prompt)
            if len(calls) == 1:
                raise RuntimeError("rate limited")
            return "  A logo  "

        images = [ExtractedImage(data=png_data_uri, page=p, width=64, height=48) for p in (1, 2)]
        described = await describe_images(images, flaky, delay=0)

        assert [d.description for d in described] == ["", "A logo"]
