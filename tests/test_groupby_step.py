from types import SimpleNamespace

import affluent as af

ROWS = [
    {"team": "red", "score": 1},
    {"team": "blue", "score": 2},
    {"team": "red", "score": 3},
]


async def test_group_by_field():
    """Test GroupBy on a record field"""
    result = await (ROWS | af.GroupBy("team")).result()
    assert result == [
        {
            "red": [{"team": "red", "score": 1}, {"team": "red", "score": 3}],
            "blue": [{"team": "blue", "score": 2}],
        }
    ]
    assert list(result[0]) == ["red", "blue"]


async def test_group_by_function():
    result = await af.Pipeline(["cat", "dog", "bird"]).group_by(len).result()
    assert result == [{3: ["cat", "dog"], 4: ["bird"]}]


async def test_group_by_attribute():
    players = [SimpleNamespace(team="red"), SimpleNamespace(team="blue")]
    result = await af.Pipeline(players).group_by("team").result()
    assert result == [{"red": [players[0]], "blue": [players[1]]}]


async def test_group_by_missing_field():
    result = await af.Pipeline([{"team": "red"}, {}]).group_by("team").result()
    assert result == [{"red": [{"team": "red"}], None: [{}]}]


async def test_group_by_empty_input():
    assert await af.Pipeline([]).group_by("team").result() == [{}]


async def test_group_by_step_reuse_starts_fresh():
    step = af.GroupBy("team")
    first = await (ROWS | step).result()
    second = await (ROWS[:1] | step).result()

    assert len(first[0]["red"]) == 2
    assert second == [{"red": [{"team": "red", "score": 1}]}]
