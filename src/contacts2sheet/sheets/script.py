"""Apps Script source for the sheet webhook.

Operators paste this into the target spreadsheet (Extensions > Apps Script)
and deploy it as a web app. It appends one row per POST under a script
lock, and writes readable column headers when the sheet is empty or the
first row still holds raw field keys.
"""

import json

from contacts2sheet.catalog import FIELD_KEYS, SHEET_COLUMNS

LOCK_WAIT_MS = 10000
HEADER_BACKGROUND = "#f3f4f6"
HEADER_BORDER = "#e5e7eb"

_TEMPLATE = """function doPost(e) {
  var lock = LockService.getScriptLock();
  lock.tryLock(%(lock_wait)d);

  try {
    var sheet = SpreadsheetApp.getActiveSpreadsheet().getActiveSheet();
    var data = JSON.parse(e.postData.contents);

    var columns = %(columns)s;
    var headerNames = columns.map(function(c) { return c.header; });

    var firstCell = "";
    if (sheet.getLastRow() > 0) {
      firstCell = sheet.getRange(1, 1).getValue();
    }

    if (sheet.getLastRow() === 0 || firstCell === "%(first_key)s" || firstCell === "%(first_key_lower)s") {
      if (sheet.getLastRow() > 0) {
        sheet.getRange(1, 1, 1, headerNames.length).setValues([headerNames]);
      } else {
        sheet.appendRow(headerNames);
      }
      sheet.getRange(1, 1, 1, headerNames.length)
           .setFontWeight("bold")
           .setBackground("%(header_background)s")
           .setBorder(true, true, true, true, true, true, "%(header_border)s", SpreadsheetApp.BorderStyle.SOLID);
      sheet.setFrozenRows(1);
    }

    var row = columns.map(function(c) {
      return data[c.key] || "";
    });
    sheet.appendRow(row);

    return ContentService.createTextOutput(JSON.stringify({"result": "success"}))
      .setMimeType(ContentService.MimeType.JSON);
  } catch (err) {
    return ContentService.createTextOutput(JSON.stringify({"result": "error", "error": err.toString()}))
      .setMimeType(ContentService.MimeType.JSON);
  } finally {
    lock.releaseLock();
  }
}
"""


def render_apps_script() -> str:
    """Apps Script webhook source with the current column mapping."""
    columns = [{"header": SHEET_COLUMNS[key], "key": key} for key in FIELD_KEYS]
    columns_js = json.dumps(columns, indent=6).replace("\n]", "\n    ]")
    first_key = FIELD_KEYS[0]
    return _TEMPLATE % {
        "lock_wait": LOCK_WAIT_MS,
        "header_background": HEADER_BACKGROUND,
        "header_border": HEADER_BORDER,
        "columns": columns_js,
        "first_key": first_key,
        "first_key_lower": first_key.lower(),
    }


APPS_SCRIPT_SOURCE = render_apps_script()
