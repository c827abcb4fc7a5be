import pandas as pd

from linear_time.visual.tables import prepare_issue_table


def test_issue_links_come_only_from_linear_urls():
    df = pd.DataFrame(
        {
            "id": ["i1", "i2"],
            "identifier": ["ENG-1", "ENG-2"],
            "title": ["Fix login", "Export"],
            "state": ["Done", "Todo"],
            "done": [True, False],
            "url": ["https://linear.app/acme/issue/ENG-1/fix-login", None],
            "hours_spent": [1.0, 0.0],
        }
    )
    table, display_cols, cfg = prepare_issue_table(df)
    assert table.loc[0, "Issue"] == "https://linear.app/acme/issue/ENG-1/fix-login"
    assert table.loc[1, "Issue"] is None
    assert display_cols == ["Issue", "title", "state", "done", "hours_spent"]
    assert "done" in cfg
