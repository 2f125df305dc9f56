"""Unit tests for AI flow definitions and prompt rendering."""

import pytest

from recipesnap.services.ai_flows import (
    GENERATE_RECIPE_FLOW,
    IDENTIFY_FOOD_FLOW,
    render_prompt,
)
from recipesnap.services.ai_schemas import (
    GenerateRecipeOutput,
    IdentifyFoodItemsInput,
    IdentifyFoodItemsOutput,
)


URI = "data:image/jpeg;base64,/9j/4AAQ"


class TestRenderPrompt:
    def test_media_placeholder_becomes_image_block(self):
        blocks = render_prompt("Look at this.\n\nImage: {{media url=photo}}", {"photo": URI})

        assert blocks == [
            {"type": "text", "text": "Look at this.\n\nImage:"},
            {
                "type": "image",
                "source": {"type": "base64", "media_type": "image/jpeg", "data": "/9j/4AAQ"},
            },
        ]

    def test_text_after_media_is_kept(self):
        blocks = render_prompt("{{media url=photo}}\nDescribe it.", {"photo": URI})

        assert blocks[0]["type"] == "image"
        assert blocks[1] == {"type": "text", "text": "Describe it."}

    def test_text_placeholder_substituted_inline(self):
        blocks = render_prompt("Cook for {{ guests }} people.", {"guests": 4})

        assert blocks == [{"type": "text", "text": "Cook for 4 people."}]

    def test_single_braces_left_alone(self):
        blocks = render_prompt('Return {"foodItems": []}', {})

        assert blocks == [{"type": "text", "text": 'Return {"foodItems": []}'}]

    def test_missing_value(self):
        with pytest.raises(ValueError, match="photo"):
            render_prompt("{{media url=photo}}", {})

    def test_media_value_not_a_data_uri(self):
        with pytest.raises(ValueError, match="not a data URI"):
            render_prompt("{{media url=photo}}", {"photo": "https://example.com/a.jpg"})


class TestFlowDefinitions:
    def test_identify_flow_schemas(self):
        assert IDENTIFY_FOOD_FLOW.input_schema is IdentifyFoodItemsInput
        assert IDENTIFY_FOOD_FLOW.output_schema is IdentifyFoodItemsOutput

    def test_recipe_flow_schemas(self):
        assert GENERATE_RECIPE_FLOW.output_schema is GenerateRecipeOutput

    @pytest.mark.parametrize("flow", [IDENTIFY_FOOD_FLOW, GENERATE_RECIPE_FLOW])
    def test_prompt_binds_exactly_one_image(self, flow):
        blocks = render_prompt(flow.prompt, {"photoDataUri": URI})

        images = [block for block in blocks if block["type"] == "image"]
        assert len(images) == 1
        assert images[0]["source"]["data"] == "/9j/4AAQ"

    def test_prompts_ask_for_wire_keys(self):
        assert '"foodItems"' in IDENTIFY_FOOD_FLOW.prompt
        for key in ('"recipeName"', '"ingredients"', '"instructions"'):
            assert key in GENERATE_RECIPE_FLOW.prompt
