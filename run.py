import os
import sys

from backend.trabalhos import create_app

try:
    app = create_app()
except ValueError as e:
    print(f"\n--- ERRO CRÍTICO DE CONFIGURAÇÃO ---\nFalha ao iniciar a aplicação: {e}\nVerifique as variáveis de ambiente.\n--------------------------------------\n")
    app = None

if __name__ == '__main__':
    if app is None:
        sys.exit(1)

    port = int(os.environ.get("PORT", 5000))
    debug = app.config.get('FLASK_ENV') == 'development'
    app.run(debug=debug, host='0.0.0.0', port=port, use_reloader=False)
