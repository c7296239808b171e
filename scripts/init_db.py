"""Creates the data directory, the empty save warning table and the preview folder."""
import os
import pandas as pd

from ecostore_admin.config import settings
from ecostore_admin.database import db


os.makedirs(settings.PREVIEW_DIR, exist_ok=True)

path = db._file_path("save_warnings")
if not path.exists():
    path.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(columns=['id', 'product_id', 'step', 'message', 'items', 'created_at'])
    df.to_csv(path, index=False)
    print(f'Created {path}')
else:
    print(f'{path} already exists')
