"""
パッケージとして実行するためのエントリポイント

【使用方法】
python -m recorder
python -m recorder --capture-typing --json
"""

from recorder.step_recorder import main

main()
